"""Base Dialect type: subclasses open driver connections for each engine.

Rendered SQL is always the same; a dialect only knows how to connect, which
placeholder style its driver expects, and how to read its insert ids and
disconnect errors.
"""

from abc import ABC, abstractmethod
from typing import Any, ClassVar, Optional

from pydantic import BaseModel


class Dialect(BaseModel, ABC):
    """Base for database dialects; subclasses implement connect() for a given URL."""

    model_config = {"arbitrary_types_allowed": True}

    SUPPORTED_SCHEMA: ClassVar[tuple[str, ...]] = ()
    """URL schemes this dialect handles (e.g. ('sqlite',), ('mysql',))."""

    paramstyle: ClassVar[str] = "qmark"
    """DB-API paramstyle of the driver (see placeholders.translate_placeholders)."""

    @abstractmethod
    def connect(self, url: str) -> Any:
        """Return a new raw driver connection for the given URL, in autocommit mode.

        The return value is engine-specific (e.g. sqlite3.Connection, pymysql.Connection).
        """
        ...  # pylint: disable=unnecessary-ellipsis

    @abstractmethod
    def insert_ids(self, lastrowid: Optional[int], rowcount: int) -> list[int]:
        """Ids generated by one multi-row INSERT, from the driver's lastrowid and rowcount."""
        ...  # pylint: disable=unnecessary-ellipsis

    def is_disconnect(self, error: BaseException) -> bool:
        """Whether ``error`` means the connection itself is unusable."""
        return False
