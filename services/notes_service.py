"""NotesService: private notes per meeting, one document holding all notes."""
import logging
import uuid
from typing import List, Optional

from models.notes import NoteCollection, NoteItem
from services.document_store import DocumentStore
from utils.errors import MeetingOperationFailure
from utils.timestamps import utc_now_iso

logger = logging.getLogger(__name__)

NOTES = "notes"


class NotesService:

    def __init__(self, store: DocumentStore):
        self.store = store

    async def _collection(self, meeting_id: str) -> Optional[NoteCollection]:
        data = await self.store.get(NOTES, meeting_id)
        if data is None:
            return None
        return NoteCollection.model_validate(data)

    async def _save(self, collection: NoteCollection) -> None:
        await self.store.set(NOTES, collection.meeting_id, collection.model_dump(mode="json"))

    async def add_note(self, meeting_id: str, user_id: str, content: str) -> NoteItem:
        now = utc_now_iso()
        note = NoteItem(id=str(uuid.uuid4()), content=content, created_at=now, updated_at=now)

        collection = await self._collection(meeting_id)
        if collection is None:
            collection = NoteCollection(
                id=meeting_id,
                meeting_id=meeting_id,
                user_id=user_id,
                created_at=now,
                updated_at=now,
            )

        collection.notes[note.id] = note
        collection.updated_at = now
        await self._save(collection)

        logger.info(f"Note added: meeting_id={meeting_id}, note_id={note.id}")
        return note

    async def get_notes(self, meeting_id: str) -> List[NoteItem]:
        """Notes of a meeting, oldest first."""
        collection = await self._collection(meeting_id)
        if collection is None:
            return []
        return sorted(collection.notes.values(), key=lambda note: note.created_at)

    async def update_note(self, meeting_id: str, note_id: str, content: str) -> NoteItem:
        collection = await self._collection(meeting_id)
        if collection is None or note_id not in collection.notes:
            raise MeetingOperationFailure(f"Note \"{note_id}\" not found.")

        now = utc_now_iso()
        note = collection.notes[note_id].model_copy(update={"content": content, "updated_at": now})
        collection.notes[note_id] = note
        collection.updated_at = now
        await self._save(collection)

        logger.info(f"Note updated: meeting_id={meeting_id}, note_id={note_id}")
        return note

    async def delete_note(self, meeting_id: str, note_id: str) -> None:
        """Delete a note; the collection document goes with its last note."""
        collection = await self._collection(meeting_id)
        if collection is None or note_id not in collection.notes:
            raise MeetingOperationFailure(f"Note \"{note_id}\" not found.")

        del collection.notes[note_id]
        if not collection.notes:
            await self.store.delete(NOTES, meeting_id)
            logger.info(f"Last note deleted, collection removed: meeting_id={meeting_id}")
            return

        collection.updated_at = utc_now_iso()
        await self._save(collection)
        logger.info(f"Note deleted: meeting_id={meeting_id}, note_id={note_id}")
