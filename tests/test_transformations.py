"""Tests for the before/after gallery."""

import pytest

from barbershop.models import Transformation


@pytest.fixture
def make_transformation(session):
    def _make(title="Fade makeover", **fields):
        transformation = Transformation(
            title=title,
            before_image=fields.pop("before_image", "https://img.test/before.jpg"),
            after_image=fields.pop("after_image", "https://img.test/after.jpg"),
            **fields,
        )
        session.add(transformation)
        session.commit()
        session.refresh(transformation)
        return transformation

    return _make


class TestGallery:
    def test_public_gallery_featured_first(self, client, make_transformation):
        make_transformation(title="Plain", display_order=0)
        make_transformation(title="Star", is_featured=True, display_order=5)
        make_transformation(title="Hidden", is_active=False)

        titles = [t["title"] for t in client.get("/transformations/gallery").json()]
        assert titles == ["Star", "Plain"]


class TestTransformationAdmin:
    def test_create(self, client, barber, service, owner_headers):
        payload = {
            "title": "Beard cleanup",
            "before_image": "b.jpg",
            "after_image": "a.jpg",
            "barber_id": barber.id,
            "service_id": service.id,
        }
        response = client.post("/admin/transformations", json=payload, headers=owner_headers)
        assert response.status_code == 201
        assert response.json()["barber_id"] == barber.id

    def test_unknown_service(self, client, owner_headers):
        payload = {"title": "X", "before_image": "b.jpg", "after_image": "a.jpg", "service_id": 42}
        assert client.post("/admin/transformations", json=payload, headers=owner_headers).status_code == 422

    def test_update_and_delete(self, client, make_transformation, owner_headers):
        transformation = make_transformation()
        data = client.put(f"/admin/transformations/{transformation.id}", json={"is_featured": True},
                          headers=owner_headers).json()
        assert data["is_featured"] is True

        assert client.delete(f"/admin/transformations/{transformation.id}", headers=owner_headers).status_code == 204
        assert client.get(f"/admin/transformations/{transformation.id}", headers=owner_headers).status_code == 404

    def test_barber_forbidden(self, client, barber_headers):
        assert client.get("/admin/transformations", headers=barber_headers).status_code == 403
