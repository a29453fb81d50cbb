"""MySQL dialect."""

import logging
import urllib.parse
from typing import ClassVar, Optional

from .base import Dialect

logger = logging.getLogger(__name__)

# CR_SERVER_GONE_ERROR, CR_SERVER_LOST, CR_CONN_HOST_ERROR
_DISCONNECT_CODES = (2003, 2006, 2013)


class MysqlDialect(Dialect):
    """Dialect for MySQL (scheme mysql), through pymysql."""

    SUPPORTED_SCHEMA: ClassVar[tuple[str, ...]] = ("mysql",)
    paramstyle: ClassVar[str] = "format"

    def connect(self, url: str):
        import pymysql  # pylint: disable=import-outside-toplevel,import-error
        parsed = urllib.parse.urlparse(url)
        logger.info("Connecting to MySQL database %s on %s", (parsed.path or "")[1:], parsed.hostname)
        return pymysql.connect(
            host=parsed.hostname,
            user=urllib.parse.unquote(parsed.username) if parsed.username else None,
            password=urllib.parse.unquote(parsed.password) if parsed.password else None,
            database=(parsed.path or "")[1:] or None,
            port=parsed.port or 3306,
            autocommit=True,
        )

    def insert_ids(self, lastrowid: Optional[int], rowcount: int) -> list[int]:
        # MySQL reports the id of the first row of a multi-row INSERT
        if not lastrowid or rowcount <= 0:
            return []
        return list(range(lastrowid, lastrowid + rowcount))

    def is_disconnect(self, error: BaseException) -> bool:
        import pymysql  # pylint: disable=import-outside-toplevel,import-error
        if isinstance(error, pymysql.err.InterfaceError):
            return True
        return isinstance(error, pymysql.err.OperationalError) and bool(error.args) and error.args[0] in _DISCONNECT_CODES
