"""
Attachment service: form working lists, upload conversion and previews.

Architecture:
- A form keeps an AttachmentWorkingList separate from the owner's saved
  collection until the form is committed.
- New attachments are staged (transient) in the working list and only
  reach the database when the owner is saved; a cancelled form leaves
  nothing behind.
- Saving replaces the owner's collection with the working list; saved
  attachments that were dropped from the list are deleted.
"""
import logging
import os
import uuid
from typing import Iterable, List, Optional, Union

from flask import current_app
from sqlalchemy.orm import Session
from werkzeug.datastructures import FileStorage

from app.exceptions import ValidationError
from app.models import Attachment, IMAGE_TYPE

logger = logging.getLogger(__name__)

DEFAULT_MAX_UPLOAD_SIZE = 10 * 1024 * 1024


class AttachmentWorkingList:
    """
    Form-local copy of an owner's attachment list.

    Usage:
        working = AttachmentWorkingList.from_owner(ticket)
        working.add(Attachment(file_name='a.pdf', file_type='pdf', file_data=b'...'))
        working.remove(old_attachment)
        replace_attachments(session, ticket, working.items)
    """

    def __init__(self, attachments: Optional[Iterable[Attachment]] = None):
        self._items: List[Attachment] = list(attachments or [])

    @classmethod
    def from_owner(cls, owner) -> 'AttachmentWorkingList':
        """Start from the owner's currently saved attachments."""
        return cls(owner.attachments)

    @property
    def items(self) -> List[Attachment]:
        return list(self._items)

    def add(self, attachment: Attachment) -> Attachment:
        self._items.append(attachment)
        return attachment

    def extend(self, attachments: Iterable[Attachment]) -> None:
        for attachment in attachments:
            self.add(attachment)

    def remove(self, target: Union[Attachment, int]) -> bool:
        """
        Remove an attachment (or attachment id) from the working list only.

        Returns:
            True if something was removed
        """
        for index, attachment in enumerate(self._items):
            if attachment is target or (isinstance(target, int) and attachment.id == target):
                del self._items[index]
                return True
        return False

    def retain_ids(self, keep_ids: Iterable[int]) -> None:
        """Keep new (unsaved) attachments plus saved ones whose id is listed."""
        keep = set(keep_ids)
        self._items = [a for a in self._items if a.id is None or a.id in keep]

    def __len__(self):
        return len(self._items)

    def __iter__(self):
        return iter(self._items)


def type_tag_for(file_name: str, content_type: Optional[str] = None) -> str:
    """'image' for image uploads, otherwise the file extension (without dot)."""
    if content_type and content_type.startswith('image/'):
        return IMAGE_TYPE
    return os.path.splitext(file_name or '')[1].lstrip('.').lower()


def build_attachment(file_name: str, file_type: str, file_data: bytes) -> Attachment:
    """Create a transient attachment (persisted when its owner is saved)."""
    return Attachment(file_name=file_name, file_type=file_type, file_data=file_data)


def _max_upload_size() -> int:
    try:
        return current_app.config.get('MAX_UPLOAD_SIZE', DEFAULT_MAX_UPLOAD_SIZE)
    except RuntimeError:
        # Outside an application context
        return DEFAULT_MAX_UPLOAD_SIZE


def attachments_from_uploads(files: Iterable[FileStorage]) -> List[Attachment]:
    """
    Convert uploaded files (photo/document picker output) into attachments.

    Files whose bytes cannot be read, or that are empty, are skipped.

    Raises:
        ValidationError: If a file exceeds MAX_UPLOAD_SIZE
    """
    max_size = _max_upload_size()
    result = []

    for upload in files:
        if upload is None:
            continue
        try:
            data = upload.read()
        except (OSError, ValueError) as e:
            logger.warning(f"[ATTACHMENTS] Skipping unreadable upload '{upload.filename}': {e}")
            continue

        if not data:
            logger.warning(f"[ATTACHMENTS] Skipping empty upload '{upload.filename}'")
            continue

        if len(data) > max_size:
            max_mb = max_size / (1024 * 1024)
            raise ValidationError(f"File '{upload.filename}' is too large. Maximum {max_mb:.1f}MB")

        file_type = type_tag_for(upload.filename, upload.mimetype)
        file_name = upload.filename
        if not file_name:
            file_name = f"photo-{uuid.uuid4()}.jpg" if file_type == IMAGE_TYPE else f"file-{uuid.uuid4()}"

        result.append(build_attachment(file_name, file_type, data))
        logger.info(f"[ATTACHMENTS] Staged '{file_name}' ({len(data)} bytes, type={file_type or '-'})")

    return result


def replace_attachments(session: Session, owner, attachments: Iterable[Attachment]) -> None:
    """
    Replace an owner's attachments with a working list (no merge).

    Saved attachments missing from the new list are deleted.
    """
    new_items = list(attachments)
    keep = {id(a) for a in new_items}
    removed = [a for a in owner.attachments if id(a) not in keep]

    for attachment in removed:
        owner.attachments.remove(attachment)
        if attachment.id is not None:
            session.delete(attachment)

    owner.attachments = new_items
    if removed:
        logger.info(f"[ATTACHMENTS] Removed {len(removed)} attachment(s) from {owner!r}")


def get_attachment(session: Session, attachment_id: int) -> Optional[Attachment]:
    return session.query(Attachment).filter(Attachment.id == attachment_id).first()
