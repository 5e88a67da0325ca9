from dataclasses import dataclass

from pgcall.engine import get_available_dialects, get_engine_class
from pgcall.engine import is_supported_dialect

from libb import ConfigOptions, scriptname

__all__ = ['CallOptions']


@dataclass
class CallOptions(ConfigOptions):
    """Options

    supported driver names: `postgresql`

    Session options:
    - autocommit: Run each routine call in its own transaction (default: True).
      With autocommit off, transaction control is left to the caller.
    """
    drivername: str = 'postgresql'
    hostname: str = None
    username: str = None
    password: str = None
    database: str = None
    port: int = 0
    timeout: int = 0
    appname: str = None
    autocommit: bool = True

    def __post_init__(self):
        if not is_supported_dialect(self.drivername):
            available = get_available_dialects()
            raise ValueError(f'drivername must be one of: {available}')
        self.appname = self.appname or scriptname() or 'python_console'
        engine_cls = get_engine_class(self.drivername)
        engine_cls.validate_options(self)
