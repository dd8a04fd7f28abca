import io
import zipfile

import pytest

from automate_core.archive import build_scan_archive, encode_upload, read_scans
from automate_core.client import AutomateClient
from automate_core.errors import ErrorCode, FlowError
from automate_core.headers import HeaderSet
from automate_core.orders import OrderDescriptor, OrderFile, OrderSubmitter
from automate_core.versions import ApiVersion

from conftest import ENDPOINT, api, extract_upload_archive, make_response

SESSION = HeaderSet([("cookie", "af=fresh;auth=secret"), ("X-XSRF-TOKEN", "fresh-token")])


@pytest.fixture
def descriptor():
    return OrderDescriptor(
        upper_jaw_scan_name="upper.stl", lower_jaw_scan_name="lower.stl", unns=(11, 21)
    )


def _submitter(http, version):
    return OrderSubmitter(AutomateClient(ENDPOINT, ApiVersion(version), http=http))


class TestDescriptor:
    def test_v3_payload(self, descriptor):
        assert descriptor.to_payload(ApiVersion.V3) == {
            "name": "Order",
            "unns": [11, 21],
            "toothNumberingSystem": "unn",
            "upperJawScanName": "upper.stl",
            "lowerJawScanName": "lower.stl",
            "designPreferences": {"material": "Zirconia"},
        }

    def test_v2_payload_adds_order_code_and_source(self, descriptor):
        payload = descriptor.to_payload(ApiVersion.V2)
        assert payload["orderCode"] == "SC"
        assert payload["source"] == "3rdParty"
        assert payload["unns"] == [11, 21]


class TestArchive:
    def test_archive_round_trip(self, scans):
        upper, lower = scans
        archive = build_scan_archive(read_scans(upper, lower))

        with zipfile.ZipFile(io.BytesIO(archive)) as zf:
            assert sorted(zf.namelist()) == ["lower.stl", "upper.stl"]
            assert zf.read("upper.stl") == upper.read_bytes()
            assert zf.read("lower.stl") == lower.read_bytes()
            assert all(i.compress_type == zipfile.ZIP_DEFLATED for i in zf.infolist())

    def test_duplicate_entry_rejected(self):
        with pytest.raises(FlowError) as exc:
            build_scan_archive([("a.stl", b"1"), ("a.stl", b"2")])
        assert exc.value.code is ErrorCode.INVALID_CONFIG

    def test_missing_scan_is_config_error(self, tmp_path):
        with pytest.raises(FlowError) as exc:
            read_scans(tmp_path / "nope.stl", tmp_path / "nada.stl")
        assert exc.value.code is ErrorCode.INVALID_CONFIG

    def test_encode_upload_content_type_carries_boundary(self):
        body, content_type = encode_upload("42", b"PK-data")
        assert content_type.startswith("multipart/form-data; boundary=")
        boundary = content_type.split("boundary=", 1)[1]
        assert body.startswith(f"--{boundary}".encode())
        assert b'filename="42.zip"' in body
        assert b"Content-Type: application/zip" in body


class TestOrderFile:
    def test_text_content(self):
        f = OrderFile.from_json({"name": "order.xml", "content": "<Order/>"})
        assert f == OrderFile(name="order.xml", content=b"<Order/>")

    def test_byte_array_content(self):
        f = OrderFile.from_json({"name": "order.bin", "content": [1, 2, 255]})
        assert f.content == b"\x01\x02\xff"

    def test_missing_name(self):
        with pytest.raises(FlowError):
            OrderFile.from_json(None)


class TestV3:
    def test_send_creates_then_submits_zip(self, http, scans, descriptor):
        upper, lower = scans
        http.add("POST", f"{api('v3')}/Orders/Crown", make_response(json_body={"id": 42}))
        http.add("POST", f"{api('v3')}/Orders/42/Submit", make_response(200))

        order_id = _submitter(http, "v3").send(SESSION, descriptor, upper, lower)

        assert order_id == "42"
        create, submit = http.calls
        assert create.json()["unns"] == [11, 21]
        assert create.header("content-type") == "application/json"
        assert create.header("cookie") == "af=fresh;auth=secret"

        assert submit.header("content-type").startswith("multipart/form-data; boundary=")
        assert submit.header("X-XSRF-TOKEN") == "fresh-token"
        with extract_upload_archive(submit) as zf:
            assert sorted(zf.namelist()) == ["lower.stl", "upper.stl"]
            assert zf.read("upper.stl") == upper.read_bytes()

    def test_create_failure_reports_server_text(self, http, scans, descriptor):
        http.add(
            "POST",
            f"{api('v3')}/Orders/Crown",
            make_response(400, content=b"Material not supported"),
        )
        with pytest.raises(FlowError) as exc:
            _submitter(http, "v3").send(SESSION, descriptor, *scans)
        assert exc.value.code is ErrorCode.ORDER_CREATE_FAILED
        assert "Material not supported" in str(exc.value)
        assert len(http.calls) == 1

    def test_upload_failure(self, http, scans, descriptor):
        http.add("POST", f"{api('v3')}/Orders/Crown", make_response(json_body={"id": "7"}))
        http.add("POST", f"{api('v3')}/Orders/7/Submit", make_response(500))
        with pytest.raises(FlowError) as exc:
            _submitter(http, "v3").send(SESSION, descriptor, *scans)
        assert exc.value.code is ErrorCode.UPLOAD_FAILED
        assert exc.value.status_code == 500


class TestV2:
    QUALIFY = f"{api('v2')}/Qualification/QualifyOrderInfo"

    def test_qualify_then_stream_with_order_file(self, http, scans, descriptor):
        upper, lower = scans
        http.add(
            "POST",
            self.QUALIFY,
            make_response(
                json_body={
                    "errorMessage": "",
                    "orderId": "abc-1",
                    "orderFile": {"name": "abc-1.xml", "content": "<Order id='abc-1'/>"},
                }
            ),
        )
        http.add("POST", f"{api('v2')}/Streaming/Upload/abc-1", make_response(200))

        order_id = _submitter(http, "v2").send(SESSION, descriptor, upper, lower)

        assert order_id == "abc-1"
        qualify, upload = http.calls
        assert qualify.json()["orderCode"] == "SC"
        with extract_upload_archive(upload) as zf:
            assert sorted(zf.namelist()) == ["abc-1.xml", "lower.stl", "upper.stl"]
            assert zf.read("abc-1.xml") == b"<Order id='abc-1'/>"
            assert zf.read("lower.stl") == lower.read_bytes()

    def test_qualification_error_message_is_fatal(self, http, scans, descriptor):
        http.add(
            "POST",
            self.QUALIFY,
            make_response(json_body={"errorMessage": "Tooth 11 cannot be designed"}),
        )
        with pytest.raises(FlowError) as exc:
            _submitter(http, "v2").send(SESSION, descriptor, *scans)
        assert exc.value.code is ErrorCode.QUALIFICATION_FAILED
        assert str(exc.value) == "Tooth 11 cannot be designed"
        assert len(http.calls) == 1

    def test_qualification_non_json_failure(self, http, scans, descriptor):
        http.add("POST", self.QUALIFY, make_response(502, content=b"<html>bad gateway"))
        with pytest.raises(FlowError) as exc:
            _submitter(http, "v2").send(SESSION, descriptor, *scans)
        assert exc.value.status_code == 502
