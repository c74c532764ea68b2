"""
QR scan classification tests.

Verifies:
- First scan of an active code is ORIGINAL, every later scan ALREADY_USED
- Unknown codes are FAKE and inactive codes INACTIVE, and both are recorded
- ALREADY_USED results point back at the scan that consumed the code
- Result themes, history, stats and brand analytics
"""

import httpx
import pytest

from authentiks.models import QrCode, Scan
from authentiks.result_themes import AUTHENTIC, COUNTERFEIT, REPEAT_SCAN, theme_for
from authentiks.services import geocoding_service, scan_service
from authentiks.services.scan_service import classify


@pytest.fixture
def active_code(db_session, brand):
    qr = QrCode(code="ACME-0001-B1-AB12", product_name="Face Serum", brand="ACME", brand_id=brand.id,
                batch_no="B1", expiry_date="2027-01-01", sequence=1, is_active=True)
    db_session.add(qr)
    db_session.commit()
    return qr


@pytest.fixture
def inactive_code(db_session, brand):
    qr = QrCode(code="ACME-000002-ORD-1-2-ZZ99", product_name="Face Serum", brand="ACME", brand_id=brand.id,
                sequence=2, is_active=False)
    db_session.add(qr)
    db_session.commit()
    return qr


def scan(client, code, headers=None, **extra):
    resp = client.post("/api/scan", json={"qrCode": code, **extra}, headers=headers or {})
    assert resp.status_code == 200, resp.json
    return resp.json


# =============================================================================
# CLASSIFICATION
# =============================================================================


class TestClassify:

    def test_table(self):
        assert classify(None) == "FAKE"
        assert classify(QrCode(is_active=False)) == "INACTIVE"
        assert classify(QrCode(is_active=True)) == "ORIGINAL"
        assert classify(QrCode(is_active=True, first_scan_id=7)) == "ALREADY_USED"

    def test_inactive_wins_over_used(self):
        assert classify(QrCode(is_active=False, first_scan_id=7)) == "INACTIVE"


class TestScanFlow:

    def test_original_then_already_used(self, client, db_session, active_code, consumer, consumer_headers):
        first = scan(client, active_code.code, consumer_headers, place="Mumbai")
        assert first["status"] == "ORIGINAL"
        assert first["data"]["productName"] == "Face Serum"
        assert first["data"]["batchNo"] == "B1"
        assert first["data"]["place"] == "Mumbai"
        assert first["data"]["scannedAt"].endswith("Z")
        assert first["theme"]["label"] == "Authentic"

        second = scan(client, active_code.code, place="Pune")
        assert second["status"] == "ALREADY_USED"
        assert second["theme"]["label"] == "Repeat Scan"
        original = second["data"]["originalScan"]
        assert original["scannedBy"] == consumer.mobile
        assert original["place"] == "Mumbai"
        assert original["scannedAt"] == first["data"]["scannedAt"]

        third = scan(client, active_code.code, consumer_headers)
        assert third["status"] == "ALREADY_USED"
        assert third["data"]["originalScan"]["place"] == "Mumbai"

        db_session.expire_all()
        qr = db_session.get(QrCode, active_code.id)
        first_scan = db_session.query(Scan).order_by(Scan.id).first()
        assert qr.first_scan_id == first_scan.id
        assert qr.used_at is not None
        assert db_session.query(Scan).count() == 3

    def test_fake_is_recorded(self, client, db_session, brand, consumer_headers):
        body = scan(client, "ACME-9999-NOPE-XXXX", consumer_headers)
        assert body["status"] == "FAKE"
        assert body["theme"]["label"] == "Counterfeit"

        row = db_session.query(Scan).one()
        assert row.status == "FAKE"
        assert row.qr_code_id is None
        assert row.brand_id == brand.id

    def test_inactive_never_consumes(self, client, db_session, inactive_code, consumer_headers):
        for _ in range(2):
            body = scan(client, inactive_code.code, consumer_headers)
            assert body["status"] == "INACTIVE"
            assert body["message"] == "This QR code is inactive."

        db_session.expire_all()
        assert db_session.get(QrCode, inactive_code.id).first_scan_id is None

        inactive_code.is_active = True
        db_session.commit()
        assert scan(client, inactive_code.code, consumer_headers)["status"] == "ORIGINAL"

    def test_anonymous_scan(self, client, db_session, active_code):
        body = scan(client, active_code.code)
        assert body["status"] == "ORIGINAL"
        assert db_session.query(Scan).one().user_id is None

        repeat = scan(client, active_code.code)
        assert repeat["data"]["originalScan"]["scannedBy"] == "Unknown"

    def test_missing_code(self, client, db_session):
        resp = client.post("/api/scan", json={})
        assert resp.status_code == 400
        assert resp.json["error"] == "qrCode is required"

    def test_place_falls_back_to_unknown(self, client, db_session, active_code):
        body = scan(client, active_code.code, latitude=19.07, longitude=72.87)
        assert body["data"]["place"] == "Unknown location"
        assert body["data"]["latitude"] == 19.07


class TestPreCheck:

    def test_found(self, client, db_session, active_code):
        resp = client.post("/api/scan/check", json={"qrCode": active_code.code})
        assert resp.json["status"] == "FOUND"
        assert resp.json["product"]["productName"] == "Face Serum"
        assert db_session.query(Scan).count() == 0

    def test_inactive(self, client, db_session, inactive_code):
        assert client.post("/api/scan/check", json={"qrCode": inactive_code.code}).json["status"] == "INACTIVE"

    def test_fake(self, client, db_session):
        assert client.post("/api/scan/check", json={"qrCode": "X-1"}).json["status"] == "FAKE"

    def test_check_does_not_consume(self, client, db_session, active_code):
        client.post("/api/scan/check", json={"qrCode": active_code.code})
        assert scan(client, active_code.code)["status"] == "ORIGINAL"

    def test_array_body(self, client, db_session, active_code):
        resp = client.post("/api/scan/check", json=[active_code.code])
        assert resp.status_code == 400
        assert resp.json["error"] == "Request body must be a JSON object"

        assert client.post("/api/scan", json=[active_code.code]).status_code == 400
        assert db_session.query(Scan).count() == 0


# =============================================================================
# THEMES
# =============================================================================


class TestThemes:

    @pytest.mark.parametrize(
        "status,theme",
        [("ORIGINAL", AUTHENTIC), ("FAKE", COUNTERFEIT), ("INACTIVE", COUNTERFEIT), ("ALREADY_USED", REPEAT_SCAN)],
    )
    def test_mapping(self, status, theme):
        assert theme_for(status) is theme

    def test_unknown_status_is_counterfeit(self):
        assert theme_for("SOMETHING_NEW") is COUNTERFEIT
        assert theme_for(None) is COUNTERFEIT

    def test_colours(self):
        assert AUTHENTIC.color == "#0B610A"
        assert COUNTERFEIT.color == "#E30211"
        assert REPEAT_SCAN.color == "#DFB408"


# =============================================================================
# HISTORY & ANALYTICS
# =============================================================================


class TestHistoryAndStats:

    def test_history_and_stats(self, client, db_session, active_code, inactive_code, consumer_headers):
        scan(client, active_code.code, consumer_headers)
        scan(client, active_code.code, consumer_headers)
        scan(client, inactive_code.code, consumer_headers)
        scan(client, "ACME-0000-FAKE-0000", consumer_headers)
        scan(client, active_code.code)

        history = client.get("/api/scan/history", headers=consumer_headers).json
        assert [item["status"] for item in history] == ["FAKE", "INACTIVE", "ALREADY_USED", "ORIGINAL"]

        stats = client.get("/api/scan/stats", headers=consumer_headers).json
        assert stats == {"totalScans": 4, "authentiks": 1, "counterfeit": 2, "alert": 1}

    def test_brand_scans(self, client, db_session, active_code, other_brand, consumer_headers, company_headers):
        scan(client, active_code.code, consumer_headers)
        scan(client, "BETA-0001-B-QQQQ", consumer_headers)

        mine = client.get("/api/scan/company/all", headers=company_headers).json
        assert [item["qrCode"] for item in mine] == [active_code.code]
        assert mine[0]["user"]["mobile"] == "+919876543210"

    def test_admin_brand_filter(self, client, db_session, active_code, other_brand, admin_headers):
        scan(client, active_code.code)
        scan(client, "BETA-0001-B-QQQQ")

        everything = client.get("/api/scan/company/all", headers=admin_headers).json
        assert len(everything) == 2
        beta = client.get(f"/api/scan/company/all?brandId={other_brand.id}", headers=admin_headers).json
        assert [item["qrCode"] for item in beta] == ["BETA-0001-B-QQQQ"]


# =============================================================================
# GEOCODING
# =============================================================================


class TestGeocoding:

    def test_coordinates_validated(self):
        assert geocoding_service.parse_coordinates("19.07", 72.87) == (19.07, 72.87)
        assert geocoding_service.parse_coordinates(91, 72) == (None, None)
        assert geocoding_service.parse_coordinates(None, 72) == (None, None)
        assert geocoding_service.parse_coordinates(True, 72) == (None, None)

    def test_lookup(self, app, monkeypatch):

        def nominatim(request):
            assert request.url.params["lat"] == "19.07"
            assert "Authentiks" in request.headers["User-Agent"]
            return httpx.Response(200, json={
                "address": {"city": "Mumbai", "state": "Maharashtra", "country": "India"},
                "display_name": "somewhere long",
            })

        monkeypatch.setitem(app.config, "GEOCODING_ENABLED", True)
        place = geocoding_service.reverse_geocode(19.07, 72.87, transport=httpx.MockTransport(nominatim))
        assert place == "Mumbai, Maharashtra, India"

    def test_failure_is_unknown(self, app, monkeypatch):

        def broken(request):
            return httpx.Response(503, text="busy")

        monkeypatch.setitem(app.config, "GEOCODING_ENABLED", True)
        assert geocoding_service.reverse_geocode(1, 1, transport=httpx.MockTransport(broken)) == "Unknown location"

    def test_disabled(self, app):
        assert geocoding_service.reverse_geocode(19.07, 72.87) == "Unknown location"

    def test_scan_uses_lookup(self, client, db_session, active_code, app, monkeypatch):
        monkeypatch.setitem(app.config, "GEOCODING_ENABLED", True)
        monkeypatch.setitem(app.config, "GEOCODING_TRANSPORT", httpx.MockTransport(
            lambda request: httpx.Response(200, json={"address": {"town": "Lonavala", "country": "India"}})
        ))
        body = scan(client, active_code.code, latitude=18.75, longitude=73.4)
        assert body["data"]["place"] == "Lonavala, India"
