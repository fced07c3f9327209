"""
Adapters: CLI, configuration, processes and SSH transports
"""
