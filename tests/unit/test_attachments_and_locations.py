"""
Unit tests for attachment working lists/uploads and location search.
"""

import pytest
from io import BytesIO
from unittest.mock import MagicMock

import requests
from werkzeug.datastructures import FileStorage

from app.exceptions import ValidationError
from app.models import Attachment, Location
from app.services.attachment_service import (
    AttachmentWorkingList, attachments_from_uploads, build_attachment, type_tag_for
)
from app.services.location_service import (
    LocationQueryTracker, LocationSearchService, LocationWorkingList, PlaceResult,
    add_location_to_customer
)


class _BrokenStream:
    def read(self, *args):
        raise OSError('device went away')


def _upload(data, filename, content_type='application/octet-stream'):
    return FileStorage(stream=BytesIO(data), filename=filename, content_type=content_type)


class TestAttachmentWorkingList:
    """Tests for the form-local attachment list."""

    def test_remove_only_touches_the_working_list(self):
        first = build_attachment('a.pdf', 'pdf', b'1')
        second = build_attachment('b.pdf', 'pdf', b'2')
        working = AttachmentWorkingList([first, second])

        assert working.remove(first) is True
        assert working.remove(first) is False
        assert working.items == [second]

    def test_retain_ids_keeps_unsaved_items(self):
        saved = Attachment(id=5, file_name='saved.pdf', file_type='pdf', file_data=b'1')
        dropped = Attachment(id=6, file_name='dropped.pdf', file_type='pdf', file_data=b'1')
        fresh = build_attachment('new.pdf', 'pdf', b'2')
        working = AttachmentWorkingList([saved, dropped, fresh])

        working.retain_ids([5])
        assert working.items == [saved, fresh]


class TestUploads:
    """Tests for converting picker uploads to attachments."""

    def test_type_tag(self):
        assert type_tag_for('IMG_1.HEIC', 'image/heic') == 'image'
        assert type_tag_for('Report.PDF', 'application/pdf') == 'pdf'
        assert type_tag_for('README', None) == ''

    def test_image_and_document(self):
        result = attachments_from_uploads([
            _upload(b'\xff\xd8\xff', 'photo.jpg', 'image/jpeg'),
            _upload(b'%PDF-1.4', 'invoice.pdf', 'application/pdf'),
        ])

        assert [(a.file_name, a.file_type) for a in result] == [('photo.jpg', 'image'), ('invoice.pdf', 'pdf')]
        assert result[0].file_data == b'\xff\xd8\xff'

    def test_unnamed_photo_gets_generated_name(self):
        result = attachments_from_uploads([_upload(b'\xff\xd8', '', 'image/jpeg')])
        assert result[0].file_name.startswith('photo-')
        assert result[0].file_name.endswith('.jpg')

    def test_unreadable_and_empty_uploads_are_skipped(self):
        broken = FileStorage(stream=_BrokenStream(), filename='broken.jpg', content_type='image/jpeg')
        result = attachments_from_uploads([broken, _upload(b'', 'empty.txt'), _upload(b'ok', 'ok.txt')])

        assert [a.file_name for a in result] == ['ok.txt']

    def test_oversized_upload_rejected(self, app):
        with app.app_context():
            app.config['MAX_UPLOAD_SIZE'] = 4
            try:
                with pytest.raises(ValidationError):
                    attachments_from_uploads([_upload(b'12345', 'big.bin')])
            finally:
                app.config['MAX_UPLOAD_SIZE'] = 10 * 1024 * 1024


def _service(payload=None, error=None):
    http = MagicMock()
    http.headers = {}
    if error is not None:
        http.get.side_effect = error
    else:
        response = MagicMock()
        response.json.return_value = payload
        http.get.return_value = response
    service = LocationSearchService(
        base_url='https://geocoder.test/search',
        default_region=(37.0, -122.0, 0.05, 0.05),
        http=http
    )
    return service, http


class TestLocationSearch:
    """Tests for the geocoder client."""

    def test_parses_results_in_order(self):
        service, http = _service([
            {'name': 'Apple Park', 'lat': '37.3349', 'lon': '-122.0090',
             'display_name': 'Apple Park, Cupertino, CA'},
            {'name': '', 'lat': '37.1', 'lon': '-122.1', 'display_name': 'Main St, Cupertino'},
        ])

        places = service.search('apple')

        assert [p.name for p in places] == ['Apple Park', 'Main St']
        assert places[0].latitude == pytest.approx(37.3349)
        params = http.get.call_args.kwargs['params']
        assert params['q'] == 'apple'
        viewbox = [float(v) for v in params['viewbox'].split(',')]
        assert viewbox == pytest.approx([-122.05, 37.05, -121.95, 36.95])

    def test_blank_query_does_not_call_geocoder(self):
        service, http = _service([])
        assert service.search('   ') == []
        http.get.assert_not_called()

    def test_network_failure_is_empty_result(self):
        service, _ = _service(error=requests.ConnectionError('offline'))
        assert service.search('apple') == []

    def test_malformed_payload_is_empty_result(self):
        service, _ = _service({'error': 'nope'})
        assert service.search('apple') == []

    def test_items_without_coordinates_are_dropped(self):
        service, _ = _service([{'name': 'Nowhere'}, {'name': 'Here', 'lat': '1', 'lon': '2'}])
        assert [p.name for p in service.search('x')] == ['Here']


class TestLocationQueryTracker:
    """Tests for debounce and stale-response handling."""

    def test_query_due_after_quiet_period(self):
        tracker = LocationQueryTracker(quiet_period=0.4)
        tracker.update('caf', now=0.0)
        tracker.update('cafe', now=0.2)

        assert tracker.due(now=0.5) is None
        assert tracker.due(now=0.7) == 'cafe'
        assert tracker.due(now=1.5) is None

    def test_quiet_period_from_config(self, app):
        assert LocationQueryTracker.from_app(app).quiet_period == pytest.approx(0.4)

    def test_stale_response_is_discarded(self):
        tracker = LocationQueryTracker()
        old = tracker.begin('caf')
        new = tracker.begin('cafe')
        fresh = [PlaceResult('Cafe', 1.0, 2.0)]

        assert tracker.complete(new, fresh) is True
        assert tracker.complete(old, [PlaceResult('Old', 0.0, 0.0)]) is False
        assert tracker.results == fresh

    def test_clearing_the_field_drops_in_flight_search(self):
        tracker = LocationQueryTracker()
        token = tracker.begin('cafe')
        tracker.update('', now=1.0)

        assert tracker.complete(token, [PlaceResult('Cafe', 1.0, 2.0)]) is False
        assert tracker.results == []
        assert tracker.due(now=5.0) is None


class TestLocationBookkeeping:
    """Tests for customer location lists."""

    def test_working_list_add_and_remove(self):
        working = LocationWorkingList()
        location = working.add_place(PlaceResult('HQ', 1.0, 2.0))

        assert isinstance(location, Location)
        assert (location.latitude, location.longitude) == (1.0, 2.0)
        assert working.remove(location) is True
        assert len(working) == 0

    def test_add_location_to_customer_persists_immediately(self, session, make_customer):
        customer = make_customer(locations=['HQ'])
        name = add_location_to_customer(session, customer, PlaceResult('Depot', 3.0, 4.0))

        assert name == 'Depot'
        assert customer.locations[-1].id is not None
        assert [loc.name for loc in customer.locations] == ['HQ', 'Depot']
