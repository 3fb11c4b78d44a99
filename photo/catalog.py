"""The photo catalog: one JSON document mapping photo id to metadata."""

from photo.models import PhotoMetadata
from utils.documents import SKIP_WRITE, JsonDocument


class PhotoCatalog:
    """Read and update the catalog document."""

    def __init__(self, document: JsonDocument):
        self.document = document

    def read(self) -> dict[str, PhotoMetadata]:
        entries, _ = self.document.read()
        return {key: PhotoMetadata.from_dict(value) for key, value in entries.items()}

    def get(self, photo_id: str) -> PhotoMetadata | None:
        return self.read().get(photo_id)

    def replace_entries(self, staged: dict[str, PhotoMetadata]) -> None:
        """Overwrite each staged id's entry as a whole."""

        def apply(entries: dict):
            for key, metadata in staged.items():
                entries[key] = metadata.to_dict()

        self.document.update(apply)

    def merge_fields(self, updates: dict[str, dict]) -> dict[str, PhotoMetadata]:
        """
        Merge the supplied JSON fields into each entry, keeping the rest.

        Returns:
            The merged entries, keyed by id

        Raises:
            ValueError: If an update is not an object or names unknown fields
        """

        def apply(entries: dict) -> dict[str, PhotoMetadata]:
            merged = {}
            for key, changes in updates.items():
                current = PhotoMetadata.from_dict(entries.get(key))
                merged[key] = current.merged_with(changes)
                entries[key] = merged[key].to_dict()
            return merged

        return self.document.update(apply)

    def remove(self, photo_id: str) -> bool:
        """Drop an entry. Returns False (and writes nothing) if it was absent."""

        def apply(entries: dict):
            if photo_id not in entries:
                return SKIP_WRITE
            del entries[photo_id]
            return True

        return bool(self.document.update(apply))
