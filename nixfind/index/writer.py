"""
Index writer for nixfind.

The index is an SQLite database. Every build writes a brand new database
next to the destination and swaps it into place once the transaction has
committed, so a failed build never leaves a half-written index behind.
"""

import logging
import os
import sqlite3
import stat
import tempfile
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional, Union

from nixfind.core.exceptions import StorageFailure
from nixfind.core.interfaces import Package


logger = logging.getLogger(__name__)


SCHEMA_VERSION = 1

CREATE_PACKAGES_TABLE = """
    CREATE TABLE packages (
        attribute TEXT PRIMARY KEY NOT NULL,
        name TEXT NOT NULL,
        version TEXT NOT NULL,
        storePath TEXT NOT NULL,
        description TEXT,
        long_description TEXT
    )
"""

CREATE_INFO_TABLE = """
    CREATE TABLE index_info (
        key TEXT PRIMARY KEY NOT NULL,
        value TEXT
    )
"""

INSERT_PACKAGE = """
    INSERT INTO packages (attribute, name, version, storePath, description, long_description)
    VALUES (?, ?, ?, ?, ?, ?)
"""

INSERT_INFO = "INSERT INTO index_info (key, value) VALUES (?, ?)"


class IndexWriter:
    """
    Writes a complete index to disk.
    """

    def __init__(self, path: Union[str, Path]):
        """
        Initialize the index writer.

        Args:
            path: Destination of the index database. An existing file is
                replaced only after the new index is fully written.
        """
        self.path = Path(path).expanduser()

    def write(self, packages: Iterable[Package], source: Optional[str] = None) -> int:
        """
        Write packages to a fresh index and replace the destination with it.

        Args:
            packages: Packages to index. May be a lazy iterator; any exception
                it raises aborts the build.
            source: Human readable description of where the registry came
                from, stored with the index.

        Returns:
            Number of packages written.

        Raises:
            StorageFailure: If the database cannot be created or written.
        """
        start = time.perf_counter()

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            os.close(fd)
        except OSError as e:
            raise StorageFailure(f"unable to create index database next to {self.path}: {e}") from e

        tmp_path = Path(tmp_name)
        try:
            count = self._write_database(tmp_path, packages, source)
            try:
                os.chmod(tmp_path, self._file_mode())
                os.replace(tmp_path, self.path)
            except OSError as e:
                raise StorageFailure(f"unable to move index into place at {self.path}: {e}") from e
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise

        logger.info(f"wrote index in {time.perf_counter() - start:.4f} seconds")
        logger.debug(f"Wrote {count} packages to {self.path}")
        return count

    def _file_mode(self) -> int:
        """
        Permissions for the new index file.

        A rebuilt index keeps the mode of the one it replaces; a fresh one
        gets the usual 0o666 minus the process umask.
        """
        try:
            return stat.S_IMODE(self.path.stat().st_mode)
        except FileNotFoundError:
            pass

        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask

    def _write_database(self, db_path: Path, packages: Iterable[Package], source: Optional[str]) -> int:
        try:
            conn = sqlite3.connect(str(db_path))
        except sqlite3.Error as e:
            raise StorageFailure(f"connecting to index database: {e}") from e

        try:
            try:
                conn.execute(CREATE_PACKAGES_TABLE)
                conn.execute(CREATE_INFO_TABLE)
                conn.commit()
            except sqlite3.Error as e:
                raise StorageFailure(f"creating tables in index database: {e}") from e

            count = 0
            try:
                with conn:
                    for package in packages:
                        conn.execute(INSERT_PACKAGE, (
                            package.attribute,
                            package.name,
                            package.version,
                            package.store_path,
                            package.description,
                            package.long_description,
                        ))
                        count += 1

                    conn.executemany(INSERT_INFO, [
                        ("schema_version", str(SCHEMA_VERSION)),
                        ("built_at", datetime.now(timezone.utc).isoformat()),
                        ("source", source),
                        ("package_count", str(count)),
                    ])
            except sqlite3.IntegrityError as e:
                raise StorageFailure(f"inserting package into index database: {e}") from e
            except sqlite3.Error as e:
                raise StorageFailure(f"writing index database: {e}") from e
            except UnicodeEncodeError as e:
                raise StorageFailure(f"index text cannot be stored as UTF-8: {e}") from e

            return count
        finally:
            conn.close()
