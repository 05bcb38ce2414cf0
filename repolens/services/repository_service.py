"""Repository loading from a local folder."""

import logging
import os

from repolens.config import Settings, get_settings
from repolens.exceptions import RepositoryNotFoundError
from repolens.models import FileType, Repository, SourceFile
from repolens.services.file_classifier import FileClassifier
from repolens.services.store import InMemoryStore

logger = logging.getLogger(__name__)


class RepositoryService:
    """Loads repositories into the store and serves their files."""

    def __init__(
        self,
        store: InMemoryStore,
        classifier: FileClassifier | None = None,
        settings: Settings | None = None,
    ):
        self.store = store
        self.classifier = classifier or FileClassifier()
        self.settings = settings or get_settings()

    def load_folder(self, path: str, name: str | None = None) -> Repository:
        """Walk ``path`` and register every readable, recognized file.

        Ignored folders are pruned, files of unknown type, files larger than
        ``max_file_size`` and files that cannot be read are skipped.
        """
        root = os.path.abspath(path)
        if not os.path.isdir(root):
            raise FileNotFoundError(f"Folder not found: {path}")

        files: list[SourceFile] = []
        skipped = 0
        for current, dirs, filenames in os.walk(root):
            dirs[:] = sorted(d for d in dirs if d.lower() not in self.classifier.ignored_folders)
            for filename in sorted(filenames):
                full_path = os.path.join(current, filename)
                rel_path = os.path.relpath(full_path, root).replace(os.sep, "/")
                source = self._load_file(full_path, rel_path)
                if source is None:
                    skipped += 1
                    continue
                files.append(source)

        repository = Repository(
            name=name or os.path.basename(root),
            upload_path=root,
            size_in_bytes=sum(f.size_in_bytes for f in files),
            files=files,
            has_existing_standards=any(f.file_type == FileType.MARKDOWN for f in files),
        )
        logger.info(
            f"Loaded repository '{repository.name}': {len(files)} files ({skipped} skipped)"
        )
        return self.register(repository)

    def _load_file(self, full_path: str, rel_path: str) -> SourceFile | None:
        if self.classifier.should_ignore(rel_path):
            return None
        file_type = self.classifier.get_file_type(rel_path)
        if file_type == FileType.UNKNOWN:
            return None

        try:
            size = os.path.getsize(full_path)
        except OSError:
            return None
        if size > self.settings.max_file_size:
            logger.info(f"Skipping {rel_path}: {size} bytes exceeds max_file_size")
            return None

        try:
            with open(full_path, "r", encoding="utf-8", errors="replace") as handle:
                content = handle.read()
        except OSError as e:
            logger.warning(f"Could not read {rel_path}: {e}")
            return None

        return SourceFile.from_text(rel_path, content, file_type=file_type, size_in_bytes=size)

    def register(self, repository: Repository) -> Repository:
        """Store a repository whose files were obtained elsewhere."""
        if not repository.has_existing_standards and any(
            f.file_type == FileType.MARKDOWN for f in repository.files
        ):
            repository = repository.model_copy(update={"has_existing_standards": True})
        return self.store.add_repository(repository)

    def get_repository(self, repository_id: str) -> Repository:
        repository = self.store.get_repository(repository_id)
        if repository is None:
            raise RepositoryNotFoundError(repository_id)
        return repository

    def get_files(self, repository_id: str) -> list[SourceFile]:
        return list(self.get_repository(repository_id).files)
