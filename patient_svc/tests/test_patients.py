"""
Tests for patient endpoints.
"""
import io

from PIL import Image


def _image_bytes(fmt):
    buffer = io.BytesIO()
    Image.new("RGB", (4, 4), color="red").save(buffer, fmt)
    return buffer.getvalue()


PNG_BYTES = _image_bytes("PNG")
JPEG_BYTES = _image_bytes("JPEG")


def _create(client, form, image=None):
    files = {"image": image} if image else None
    return client.post("/patients", data=form, files=files)


# =============================================================================
# CREATE
# =============================================================================

def test_create_patient_success(client, patient_form):
    """Test successful patient creation without an image."""
    response = _create(client, patient_form)
    assert response.status_code == 201
    data = response.json()
    assert data["message"] == "Patient added successfully"
    assert isinstance(data["patientId"], int)


def test_create_patient_with_image(client, patient_form, blob_store):
    response = _create(client, patient_form, image=("jane.png", PNG_BYTES, "image/png"))
    assert response.status_code == 201
    patient_id = response.json()["patientId"]

    assert len(blob_store.blobs) == 1
    identifier, blob = next(iter(blob_store.blobs.items()))
    assert blob.content == PNG_BYTES
    assert blob.content_type == "image/png"

    patient = client.get(f"/patients/{patient_id}").json()
    assert patient["imageUrl"] == f"https://images.test/{identifier}"


def test_create_patient_stores_birthday_as_date(client, patient_form):
    patient_id = _create(client, patient_form).json()["patientId"]

    patient = client.get(f"/patients/{patient_id}").json()
    assert patient["birthday"] == "1990-05-17"
    assert patient["firstName"] == "Jane"
    assert patient["lastName"] == "Doe"
    assert patient["primaryDoctor"] == "Dr. House"
    assert patient["imageUrl"] == ""


def test_create_patient_missing_field_returns_400(client, patient_form):
    del patient_form["firstName"]
    response = _create(client, patient_form)
    assert response.status_code == 400
    assert response.json()["code"] == "validation_error"
    assert "firstName" in response.json()["error"]


def test_create_patient_blank_field_returns_400(client, patient_form):
    patient_form["primaryDoctor"] = "   "
    response = _create(client, patient_form)
    assert response.status_code == 400
    assert response.json()["error"] == "primaryDoctor is required"


def test_create_patient_invalid_birthday_writes_nothing(client, patient_form, blob_store):
    patient_form["birthday"] = "not-a-date"
    response = _create(client, patient_form, image=("jane.png", PNG_BYTES, "image/png"))
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid birthday format"

    assert client.get("/patients").json() == []
    assert blob_store.calls == []


def test_create_patient_birthday_out_of_range_returns_400(client, patient_form):
    patient_form["birthday"] = "0001-01-01T00:00:00+01:00"
    response = _create(client, patient_form)
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid birthday format"
    assert client.get("/patients").json() == []


def test_create_patient_rejects_image_with_too_many_pixels(client, patient_form, blob_store, monkeypatch):
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)
    buffer = io.BytesIO()
    Image.new("1", (100, 100)).save(buffer, "PNG")

    response = _create(client, patient_form, image=("bomb.png", buffer.getvalue(), "image/png"))
    assert response.status_code == 413
    assert response.json()["error"] == "Image dimensions exceed maximum allowed"
    assert blob_store.calls == []


def test_create_patient_rejects_non_image(client, patient_form, blob_store):
    response = _create(client, patient_form, image=("notes.txt", b"hello", "text/plain"))
    assert response.status_code == 415
    assert blob_store.calls == []


def test_create_patient_rejects_bytes_that_are_not_an_image(client, patient_form, blob_store):
    response = _create(client, patient_form, image=("fake.png", b"definitely not a png", "image/png"))
    assert response.status_code == 415
    assert response.json()["error"] == "File is not a valid image"
    assert blob_store.calls == []


def test_create_patient_rejects_large_image(client, patient_form, blob_store):
    response = _create(client, patient_form, image=("big.png", b"x" * 2048, "image/png"))
    assert response.status_code == 413
    assert blob_store.calls == []


def test_create_patient_upload_failure_inserts_no_row(client, patient_form, blob_store):
    blob_store.fail_put = True
    response = _create(client, patient_form, image=("jane.png", PNG_BYTES, "image/png"))
    assert response.status_code == 500
    assert response.json() == {"error": "Image storage failed", "code": "blob_store_error"}
    assert client.get("/patients").json() == []


# =============================================================================
# READ
# =============================================================================

def test_get_patients_empty(client):
    """Test getting patients when database is empty."""
    response = client.get("/patients")
    assert response.status_code == 200
    assert response.json() == []


def test_get_patients_ordered_by_id(client, patient_form):
    ids = []
    for first_name in ("Ann", "Bob", "Cid"):
        patient_form["firstName"] = first_name
        ids.append(_create(client, patient_form).json()["patientId"])

    data = client.get("/patients").json()
    assert [p["id"] for p in data] == ids
    assert [p["firstName"] for p in data] == ["Ann", "Bob", "Cid"]


def test_get_patient_not_found(client):
    response = client.get("/patients/999")
    assert response.status_code == 404
    data = response.json()
    assert data["code"] == "not_found"
    assert data["error"] == "Patient 999 not found"


def test_get_patient_invalid_id_returns_400(client):
    response = client.get("/patients/abc")
    assert response.status_code == 400
    assert response.json()["code"] == "validation_error"


OUT_OF_RANGE_ID = "99999999999999999999"


def test_get_patient_id_beyond_integer_range_not_found(client):
    response = client.get(f"/patients/{OUT_OF_RANGE_ID}")
    assert response.status_code == 404
    assert response.json()["code"] == "not_found"


def test_update_patient_id_beyond_integer_range_not_found(client, patient_form, blob_store):
    response = client.put(f"/patients/{OUT_OF_RANGE_ID}", data=patient_form)
    assert response.status_code == 404
    assert blob_store.calls == []


def test_delete_patient_id_beyond_integer_range_not_found(client):
    response = client.delete(f"/patients/{OUT_OF_RANGE_ID}")
    assert response.status_code == 404
    assert response.json()["code"] == "not_found"


def test_identifier_is_not_exposed(client, patient_form):
    patient_id = _create(client, patient_form, image=("jane.png", PNG_BYTES, "image/png")).json()["patientId"]
    patient = client.get(f"/patients/{patient_id}").json()
    assert "identifier" not in patient
    assert set(patient) == {
        "id", "firstName", "lastName", "birthday", "description", "primaryDoctor", "imageUrl"
    }


# =============================================================================
# UPDATE
# =============================================================================

def test_update_patient_fields_keeps_image(client, patient_form, blob_store):
    patient_id = _create(client, patient_form, image=("jane.png", PNG_BYTES, "image/png")).json()["patientId"]
    before = client.get(f"/patients/{patient_id}").json()

    patient_form["description"] = "Recovered"
    response = client.put(f"/patients/{patient_id}", data=patient_form)
    assert response.status_code == 200
    assert response.json() == {"message": "Patient updated successfully"}

    after = client.get(f"/patients/{patient_id}").json()
    assert after["description"] == "Recovered"
    assert after["imageUrl"] == before["imageUrl"]
    assert len(blob_store.blobs) == 1


def test_update_patient_replaces_image(client, patient_form, blob_store):
    patient_id = _create(client, patient_form, image=("a.png", PNG_BYTES, "image/png")).json()["patientId"]
    old_identifier = next(iter(blob_store.blobs))

    response = client.put(
        f"/patients/{patient_id}",
        data=patient_form,
        files={"image": ("b.jpg", JPEG_BYTES, "image/jpeg")},
    )
    assert response.status_code == 200

    assert old_identifier not in blob_store.blobs
    assert len(blob_store.blobs) == 1
    new_identifier = next(iter(blob_store.blobs))
    assert new_identifier != old_identifier

    patient = client.get(f"/patients/{patient_id}").json()
    assert patient["imageUrl"] == f"https://images.test/{new_identifier}"


def test_update_patient_not_found(client, patient_form, blob_store):
    response = client.put("/patients/42", data=patient_form)
    assert response.status_code == 404
    assert response.json()["code"] == "not_found"
    assert blob_store.calls == []


def test_update_patient_invalid_birthday(client, patient_form):
    patient_id = _create(client, patient_form).json()["patientId"]
    patient_form["birthday"] = "31/31/2020"
    response = client.put(f"/patients/{patient_id}", data=patient_form)
    assert response.status_code == 400
    assert client.get(f"/patients/{patient_id}").json()["birthday"] == "1990-05-17"


# =============================================================================
# DELETE
# =============================================================================

def test_delete_patient_removes_row_and_image(client, patient_form, blob_store):
    patient_id = _create(client, patient_form, image=("jane.png", PNG_BYTES, "image/png")).json()["patientId"]

    response = client.delete(f"/patients/{patient_id}")
    assert response.status_code == 200
    assert response.json() == {"message": "Patient deleted successfully"}

    assert client.get(f"/patients/{patient_id}").status_code == 404
    assert blob_store.blobs == {}


def test_delete_patient_succeeds_when_blob_delete_fails(client, patient_form, blob_store):
    patient_id = _create(client, patient_form, image=("jane.png", PNG_BYTES, "image/png")).json()["patientId"]
    blob_store.fail_delete = True

    response = client.delete(f"/patients/{patient_id}")
    assert response.status_code == 200
    assert client.get(f"/patients/{patient_id}").status_code == 404


def test_delete_patient_not_found(client):
    response = client.delete("/patients/7")
    assert response.status_code == 404


def test_ids_not_reused_after_delete(client, patient_form):
    first = _create(client, patient_form).json()["patientId"]
    client.delete(f"/patients/{first}")
    second = _create(client, patient_form).json()["patientId"]
    assert second > first


# =============================================================================
# ERROR SHAPE
# =============================================================================

def test_unknown_route_returns_error_body(client):
    response = client.get("/nope")
    assert response.status_code == 404
    assert response.json() == {"error": "Endpoint not found", "code": "not_found"}


def test_method_not_allowed(client):
    response = client.patch("/patients/1")
    assert response.status_code == 405
    assert response.json()["code"] == "method_not_allowed"


def test_unexpected_error_returns_generic_500(test_app):
    from fastapi.testclient import TestClient
    from patient_svc.core import dependencies as deps

    class BrokenService:
        def list_patients(self):
            raise RuntimeError("secret driver detail")

    test_app.dependency_overrides[deps.get_patient_service] = lambda: BrokenService()
    client = TestClient(test_app, raise_server_exceptions=False)

    response = client.get("/patients")
    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error", "code": "internal_error"}
    assert "secret" not in response.text


# =============================================================================
# LOCAL IMAGE ROUTE
# =============================================================================

def test_get_image_serves_blob(client, patient_form, blob_store):
    _create(client, patient_form, image=("jane.png", PNG_BYTES, "image/png"))
    identifier = next(iter(blob_store.blobs))

    response = client.get(f"/images/{identifier}")
    assert response.status_code == 200
    assert response.content == PNG_BYTES
    assert response.headers["content-type"] == "image/png"


def test_get_image_missing(client):
    response = client.get("/images/0123456789abcdef0123456789abcdef")
    assert response.status_code == 404
    assert response.json() == {"error": "Image not found", "code": "not_found"}


# =============================================================================
# UPLOAD READING
# =============================================================================

def test_read_image_stops_after_limit():
    from starlette.datastructures import UploadFile

    from patient_svc.api.routers.patients import _read_image

    upload = UploadFile(file=io.BytesIO(b"x" * 5000), filename="big.png")
    image = _read_image(upload, max_size=1024)
    assert image.size == 1025


def test_create_patient_rejects_upload_far_over_limit(client, patient_form, blob_store):
    response = _create(client, patient_form, image=("big.png", b"x" * 100_000, "image/png"))
    assert response.status_code == 413
    assert blob_store.calls == []
    assert client.get("/patients").json() == []
