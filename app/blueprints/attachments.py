from io import BytesIO

from flask import Blueprint, Response, abort, send_file
from app.database import get_session
from app.services.attachment_service import get_attachment
from app.utils.serializers import attachment_to_dict

attachments_bp = Blueprint('attachments', __name__, url_prefix='/attachments')


@attachments_bp.route('/<int:attachment_id>')
def view_attachment(attachment_id: int):
    """Attachment metadata (no content)."""
    attachment = get_attachment(get_session(), attachment_id)
    if not attachment:
        abort(404)
    return {'attachment': attachment_to_dict(attachment)}


@attachments_bp.route('/<int:attachment_id>/preview')
def preview(attachment_id: int) -> Response:
    """Stream the attachment bytes inline for viewing."""
    attachment = get_attachment(get_session(), attachment_id)
    if not attachment:
        abort(404)

    return send_file(
        BytesIO(attachment.file_data),
        mimetype=attachment.content_type,
        as_attachment=False,
        download_name=attachment.file_name,
        max_age=0
    )
