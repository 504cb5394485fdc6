"""
File list state for one owner.

The view (filter, sort, selection) is derived by a pure reducer over a
fetched snapshot; remote operations only feed events into it after the
relational store has confirmed them.
"""

from dataclasses import dataclass, replace
from typing import FrozenSet, Iterable, List, Optional, Tuple, Union
from ..core.exceptions import (
    ErrorKind,
    NotFoundError,
    PodcasterError,
    ValidationError,
    normalize_error,
)
from ..repositories.podcast_repo import PodcastRepository
from ..repositories.storage_repo import StorageRepository
from ..schemas.file import PodcastFile
from ..schemas.quota import QuotaSnapshot
from ..utils.constants import SortField, SortOrder
from ..utils.helpers import as_utc
from ..utils.logger import get_logger
from ..utils.validators import validate_title
from .quota_service import QuotaService

logger = get_logger(__name__)


@dataclass(frozen=True)
class FileListState:
    records: Tuple[PodcastFile, ...] = ()
    selected: FrozenSet[str] = frozenset()
    search: str = ""
    sort_field: SortField = SortField.CREATED_AT
    sort_order: SortOrder = SortOrder.DESC
    error: Optional[str] = None


@dataclass(frozen=True)
class RecordsLoaded:
    records: Tuple[PodcastFile, ...]


@dataclass(frozen=True)
class SearchChanged:
    term: str


@dataclass(frozen=True)
class SortRequested:
    field: SortField
    order: Optional[SortOrder] = None


@dataclass(frozen=True)
class SelectionToggled:
    record_id: str


@dataclass(frozen=True)
class AllSelected:
    pass


@dataclass(frozen=True)
class SelectionCleared:
    pass


@dataclass(frozen=True)
class RecordsDeleted:
    record_ids: FrozenSet[str]


@dataclass(frozen=True)
class RecordRenamed:
    record_id: str
    title: str


@dataclass(frozen=True)
class OperationFailed:
    message: str


FileListEvent = Union[
    RecordsLoaded,
    SearchChanged,
    SortRequested,
    SelectionToggled,
    AllSelected,
    SelectionCleared,
    RecordsDeleted,
    RecordRenamed,
    OperationFailed,
]


def filter_records(records: Iterable[PodcastFile], term: str) -> List[PodcastFile]:
    """Case-insensitive substring match on title or file name."""
    needle = term.lower()
    if not needle:
        return list(records)
    return [
        record
        for record in records
        if needle in (record.title or "").lower() or needle in record.file_name.lower()
    ]


def _sort_key(sort_field: SortField):
    if sort_field is SortField.NAME:
        return lambda record: record.file_name.lower()
    if sort_field is SortField.SIZE:
        return lambda record: record.file_size
    if sort_field is SortField.STATUS:
        return lambda record: record.status
    return lambda record: as_utc(record.created_at).timestamp()


def sort_records(
    records: Iterable[PodcastFile], sort_field: SortField, sort_order: SortOrder
) -> List[PodcastFile]:
    return sorted(records, key=_sort_key(sort_field), reverse=sort_order is SortOrder.DESC)


def visible_records(state: FileListState) -> List[PodcastFile]:
    """The filtered, sorted view of a state."""
    return sort_records(
        filter_records(state.records, state.search), state.sort_field, state.sort_order
    )


def reduce_file_list(state: FileListState, event: FileListEvent) -> FileListState:
    """Apply one event and return the next state."""
    if isinstance(event, RecordsLoaded):
        ids = {record.id for record in event.records}
        return replace(
            state,
            records=tuple(event.records),
            selected=frozenset(state.selected & ids),
            error=None,
        )

    if isinstance(event, SearchChanged):
        return replace(state, search=event.term)

    if isinstance(event, SortRequested):
        if event.order is not None:
            return replace(state, sort_field=event.field, sort_order=event.order)
        if event.field is state.sort_field:
            return replace(state, sort_order=state.sort_order.flipped())
        return replace(state, sort_field=event.field, sort_order=SortOrder.ASC)

    if isinstance(event, SelectionToggled):
        return replace(state, selected=state.selected ^ {event.record_id})

    if isinstance(event, AllSelected):
        visible_ids = frozenset(record.id for record in visible_records(state))
        if visible_ids and visible_ids == state.selected:
            return replace(state, selected=frozenset())
        return replace(state, selected=visible_ids)

    if isinstance(event, SelectionCleared):
        return replace(state, selected=frozenset())

    if isinstance(event, RecordsDeleted):
        return replace(
            state,
            records=tuple(r for r in state.records if r.id not in event.record_ids),
            selected=state.selected - event.record_ids,
            error=None,
        )

    if isinstance(event, RecordRenamed):
        return replace(
            state,
            records=tuple(
                r.model_copy(update={"title": event.title}) if r.id == event.record_id else r
                for r in state.records
            ),
            error=None,
        )

    if isinstance(event, OperationFailed):
        return replace(state, error=event.message)

    raise TypeError(f"Unknown file list event: {event!r}")


class FileListController:
    """Owner-scoped file list backed by the relational store."""

    def __init__(
        self,
        owner_id: str,
        file_repo: PodcastRepository,
        quota_service: QuotaService,
        storage_repo: Optional[StorageRepository] = None,
    ):
        self.owner_id = owner_id
        self.file_repo = file_repo
        self.quota_service = quota_service
        self.storage_repo = storage_repo
        self.state = FileListState()
        self.quota: Optional[QuotaSnapshot] = None

    def dispatch(self, event: FileListEvent) -> FileListState:
        self.state = reduce_file_list(self.state, event)
        return self.state

    def view(self) -> List[PodcastFile]:
        return visible_records(self.state)

    def _fail(self, exc: BaseException, fallback: str) -> PodcasterError:
        error = normalize_error(exc, ErrorKind.REMOTE_QUERY, fallback)
        logger.error(fallback, owner_id=self.owner_id, error=error.message)
        self.dispatch(OperationFailed(error.message))
        return error

    async def load(self) -> List[PodcastFile]:
        """Fetch the owner's records and replace the snapshot."""
        try:
            rows = await self.file_repo.list_by_user(self.owner_id)
        except Exception as e:
            raise self._fail(e, "Failed to load files")
        self.dispatch(RecordsLoaded(tuple(PodcastFile.model_validate(row) for row in rows)))
        return self.view()

    async def refresh_quota(self) -> QuotaSnapshot:
        self.quota = await self.quota_service.snapshot(self.owner_id)
        return self.quota

    async def bulk_delete(self, record_ids: Iterable[str]) -> List[str]:
        """
        Delete several records with one remote call.
        Local state only changes after the store confirms; then usage is refreshed.
        """
        ids = list(dict.fromkeys(record_ids))
        if not ids:
            return []
        try:
            storage_keys = await self.file_repo.get_storage_keys(ids, self.owner_id)
            deleted_ids = await self.file_repo.delete_many(ids, self.owner_id)
        except Exception as e:
            raise self._fail(e, "Failed to delete files")

        self.dispatch(RecordsDeleted(frozenset(deleted_ids)))
        logger.info("Files deleted", owner_id=self.owner_id, count=len(deleted_ids))
        await self._remove_objects(storage_keys)
        await self.refresh_quota()
        return deleted_ids

    async def delete(self, record_id: str) -> None:
        """Delete a single record."""
        deleted_ids = await self.bulk_delete([record_id])
        if not deleted_ids:
            raise NotFoundError("File not found or you do not have permission to view it.")

    async def rename(self, record_id: str, title: str) -> PodcastFile:
        """Change a record's display title."""
        try:
            title = validate_title(title)
        except ValueError as e:
            raise ValidationError(str(e))
        try:
            row = await self.file_repo.update_title(record_id, self.owner_id, title)
        except Exception as e:
            raise self._fail(e, "Failed to update title")
        if row is None:
            raise NotFoundError("File not found or you do not have permission to view it.")

        self.dispatch(RecordRenamed(record_id, title))
        return PodcastFile.model_validate(row)

    async def _remove_objects(self, keys: List[str]) -> None:
        """Remove stored objects for deleted records; failures are logged only."""
        if not keys or self.storage_repo is None:
            return
        try:
            await self.storage_repo.remove(keys)
        except Exception as e:
            logger.warning(
                "Failed to remove stored objects",
                owner_id=self.owner_id,
                keys=keys,
                error=str(e),
            )
