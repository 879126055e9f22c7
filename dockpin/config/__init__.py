from dockpin.config.settings import Settings, setup_logging

__all__ = ['Settings', 'setup_logging']
