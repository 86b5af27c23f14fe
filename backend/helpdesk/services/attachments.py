from __future__ import annotations
import os
from typing import Any, Dict, Optional
from helpdesk.models.ticket import Attachment

INLINE_EXTENSIONS = frozenset({
    '.jpg', '.jpeg', '.png', '.gif', '.bmp', '.webp',
    '.pdf',
    '.txt', '.md', '.csv',
    '.html', '.htm',
    '.svg',
})

FILE_KINDS = {
    'image': ('.jpg', '.jpeg', '.png', '.gif', '.bmp', '.webp', '.svg'),
    'pdf': ('.pdf',),
    'document': ('.doc', '.docx'),
    'spreadsheet': ('.xls', '.xlsx', '.csv'),
    'presentation': ('.ppt', '.pptx'),
    'text': ('.txt', '.md'),
    'archive': ('.zip', '.rar', '.7z'),
    'video': ('.mp4', '.avi', '.mov'),
    'audio': ('.mp3', '.wav', '.flac'),
}


def _extension(filename: Optional[str]) -> str:
    if not filename:
        return ''
    return os.path.splitext(filename)[1].lower()


def is_viewable_inline(filename: Optional[str]) -> bool:
    return _extension(filename) in INLINE_EXTENSIONS


def file_kind(filename: Optional[str]) -> str:
    ext = _extension(filename)
    for kind, extensions in FILE_KINDS.items():
        if ext in extensions:
            return kind
    return 'other'


def attachment_json(attachment: Attachment, download_url: str) -> Dict[str, Any]:
    """Attachment row for the UI; ``download_url`` points at this service's proxy route."""
    return {
        'id': attachment.id,
        'originalName': attachment.original_name,
        'size': attachment.size,
        'kind': file_kind(attachment.original_name),
        'viewableInline': is_viewable_inline(attachment.original_name),
        'downloadUrl': download_url,
    }


__all__ = ['is_viewable_inline', 'file_kind', 'attachment_json']
