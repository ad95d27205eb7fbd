from abc import ABC, abstractmethod


class LoggingPort(ABC):
    """Logging seen from the core: lazy %-style arguments, no sink handling."""

    @abstractmethod
    def info(self, msg: str, *args):
        pass

    @abstractmethod
    def warning(self, msg: str, *args):
        pass

    @abstractmethod
    def error(self, msg: str, *args):
        pass

    @abstractmethod
    def debug(self, msg: str, *args):
        pass
