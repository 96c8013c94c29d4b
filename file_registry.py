"""
Directory-backed registry of named files.

The registry has no index of its own: listing the storage directory *is*
the registry. Names are used verbatim as on-disk filenames, and uploading
an existing name replaces the previous content.
"""

import logging
import os
import shutil
import tempfile
import threading
from typing import BinaryIO, List, Optional, Union

logger = logging.getLogger(__name__)


class RegistryError(Exception):
    """Base class for registry failures reported to clients."""

    status_code = 500
    message = "Registry error"

    def __init__(self, message: Optional[str] = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class MissingInput(RegistryError):
    """Raised when an upload arrives without a file."""

    status_code = 400
    message = "No file uploaded"


class NotFound(RegistryError):
    """Raised when no stored file has exactly the requested name."""

    status_code = 404
    message = "File not found"


class DirectoryReadFailure(RegistryError):
    status_code = 500
    message = "Failed to read directory"


class ReadFailure(RegistryError):
    status_code = 500
    message = "Failed to read file"


class WriteFailure(RegistryError):
    status_code = 500
    message = "Failed to save file"


class DeleteFailure(RegistryError):
    status_code = 500
    message = "Failed to delete file"


class FileRegistry:
    """
    Store of named blobs inside one flat directory.

    Usage:
        registry = FileRegistry("uploads")
        registry.upload("report.pdf", b"...")
        registry.list_files()        # ["report.pdf"]
        with registry.download("report.pdf") as fh:
            data = fh.read()
        registry.delete("report.pdf")
    """

    def __init__(self, directory: Union[str, os.PathLike]):
        self.directory = os.fspath(directory)
        self._lock = threading.Lock()

    def ensure_directory(self) -> None:
        """Create the storage directory if it does not exist."""
        os.makedirs(self.directory, exist_ok=True)

    def path_for(self, name: str) -> str:
        return os.path.join(self.directory, name)

    def _entries(self) -> List[str]:
        try:
            return os.listdir(self.directory)
        except OSError as exc:
            logger.exception("Failed to read directory: %s", self.directory)
            raise DirectoryReadFailure() from exc

    def exists(self, name: str) -> bool:
        """Exact string match against the current directory entries."""
        return name in self._entries()

    def upload(self, name: str, content: Union[bytes, BinaryIO]) -> str:
        """
        Write content under name, replacing any file of the same name.

        content may be bytes or a readable binary stream. Returns the stored
        filename, which is always identical to name.
        """
        if not name or content is None:
            raise MissingInput()

        tmp_path = None
        try:
            self.ensure_directory()
            # staged beside the storage directory so it never shows up in a listing
            with tempfile.NamedTemporaryFile(
                dir=self.staging_directory(), prefix=".upload-", delete=False
            ) as fh:
                tmp_path = fh.name
                if isinstance(content, (bytes, bytearray, memoryview)):
                    fh.write(content)
                else:
                    shutil.copyfileobj(content, fh)
            with self._lock:
                os.replace(tmp_path, self.path_for(name))
            tmp_path = None
        except OSError as exc:
            logger.exception("Failed to write file: %s", name)
            raise WriteFailure() from exc
        finally:
            if tmp_path is not None:
                self._discard(tmp_path)

        logger.info("Stored file: %s", name)
        return name

    def staging_directory(self) -> str:
        """Directory for in-flight uploads, on the same filesystem as the store."""
        return os.path.dirname(os.path.abspath(self.directory))

    def _discard(self, path: str) -> None:
        try:
            os.remove(path)
        except OSError:
            logger.warning("Failed to remove partial upload: %s", path)

    def list_files(self) -> List[str]:
        """Return every filename in the storage directory, in filesystem order."""
        return self._entries()

    def download(self, name: str) -> BinaryIO:
        """Open the stored file for reading. The caller closes the stream."""
        with self._lock:
            if not self.exists(name):
                raise NotFound()
            try:
                return open(self.path_for(name), "rb")
            except FileNotFoundError as exc:
                raise NotFound() from exc
            except OSError as exc:
                logger.exception("Failed to read file: %s", name)
                raise ReadFailure() from exc

    def delete(self, name: str) -> None:
        with self._lock:
            if not self.exists(name):
                raise NotFound()
            try:
                os.remove(self.path_for(name))
            except FileNotFoundError as exc:
                raise NotFound() from exc
            except OSError as exc:
                logger.exception("Failed to delete file: %s", name)
                raise DeleteFailure() from exc

        logger.info("Deleted file: %s", name)
