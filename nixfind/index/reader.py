"""
Read access to a nixfind index.
"""

import logging
import sqlite3
from contextlib import closing
from pathlib import Path
from typing import Iterator, Tuple, Union

from nixfind.core.exceptions import SearchReadFailure
from nixfind.core.interfaces import IndexInfo, Package


logger = logging.getLogger(__name__)


SELECT_PACKAGES = """
    SELECT attribute, name, version, storePath, description, long_description
    FROM packages
"""


class IndexReader:
    """
    Reads packages and build metadata from an index database.

    The database is opened read-only; the reader never modifies it.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path).expanduser()

    def _connect(self) -> sqlite3.Connection:
        if not self.path.is_file():
            raise SearchReadFailure(f"index not found at {self.path}; build one with 'nixfind index'")

        uri = self.path.resolve().as_uri() + "?mode=ro"
        try:
            return sqlite3.connect(uri, uri=True)
        except sqlite3.Error as e:
            raise SearchReadFailure(f"unable to open index {self.path}: {e}") from e

    def iter_packages(self) -> Iterator[Package]:
        """
        Iterate over every package in the index.

        Raises:
            SearchReadFailure: If the index cannot be read or a row does not
                decode into a Package.
        """
        with closing(self._connect()) as conn:
            try:
                cursor = conn.execute(SELECT_PACKAGES)
                for row in cursor:
                    yield decode_row(row)
            except sqlite3.Error as e:
                raise SearchReadFailure(f"unable to read index {self.path}: {e}") from e

    def read_info(self) -> IndexInfo:
        """
        Read the build metadata of the index.

        Indexes without an ``index_info`` table report schema version 0 and
        a package count taken from the packages table.

        Raises:
            SearchReadFailure: If the index cannot be read.
        """
        with closing(self._connect()) as conn:
            try:
                count = conn.execute("SELECT COUNT(*) FROM packages").fetchone()[0]
                try:
                    rows = dict(conn.execute("SELECT key, value FROM index_info").fetchall())
                except sqlite3.OperationalError:
                    logger.debug(f"Index {self.path} has no index_info table")
                    rows = {}
            except sqlite3.Error as e:
                raise SearchReadFailure(f"unable to read index {self.path}: {e}") from e

        try:
            schema_version = int(rows.get("schema_version") or 0)
        except ValueError as e:
            raise SearchReadFailure(f"index {self.path} has an invalid schema version") from e

        return IndexInfo(
            schema_version=schema_version,
            built_at=rows.get("built_at"),
            source=rows.get("source"),
            package_count=count,
        )


def decode_row(row: Tuple) -> Package:
    """
    Decode one ``packages`` row.

    ``storePath`` is allowed to be NULL here; indexes written by other tools
    may carry packages that are not installable.

    Raises:
        SearchReadFailure: If a column has the wrong type.
    """
    try:
        attribute, name, version, store_path, description, long_description = row
    except ValueError as e:
        raise SearchReadFailure(f"unexpected index row {row!r}") from e

    for column, value in (("attribute", attribute), ("name", name), ("version", version)):
        if not isinstance(value, str):
            raise SearchReadFailure(f"error parsing results: {column} of row {attribute!r} is {value!r}")

    for column, value in (
        ("storePath", store_path),
        ("description", description),
        ("long_description", long_description),
    ):
        if value is not None and not isinstance(value, str):
            raise SearchReadFailure(f"error parsing results: {column} of row {attribute!r} is {value!r}")

    return Package(
        attribute=attribute,
        name=name,
        version=version,
        store_path=store_path,
        description=description,
        long_description=long_description,
    )
