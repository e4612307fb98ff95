"""Properties, primary selection and rooms"""

from conftest import auth_headers


def create_property(client, headers, **overrides):
    payload = {"name": "Marina Apartment", "emirate": "dubai", "property_type": "apartment", "bedrooms": 2}
    payload.update(overrides)
    response = client.post("/properties", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestProperties:
    def test_first_property_is_primary(self, client, homeowner_headers):
        prop = create_property(client, homeowner_headers)
        assert prop["is_primary"] is True
        assert prop["profile_completeness"] == 40
        assert prop["rooms"] == []

    def test_new_primary_replaces_old(self, client, homeowner_headers):
        first = create_property(client, homeowner_headers)
        second = create_property(client, homeowner_headers, name="Villa in Arabian Ranches", is_primary=True)
        assert second["is_primary"] is True

        listed = client.get("/properties", headers=homeowner_headers).json()
        assert [p["id"] for p in listed] == [second["id"], first["id"]]
        assert [p["is_primary"] for p in listed] == [True, False]

    def test_set_primary(self, client, homeowner_headers):
        first = create_property(client, homeowner_headers)
        second = create_property(client, homeowner_headers, name="Holiday Home")
        response = client.post(f"/properties/{second['id']}/primary", headers=homeowner_headers)
        assert response.json()["is_primary"] is True
        assert client.get(f"/properties/{first['id']}", headers=homeowner_headers).json()["is_primary"] is False

    def test_deleting_primary_promotes_oldest(self, client, homeowner_headers):
        first = create_property(client, homeowner_headers)
        second = create_property(client, homeowner_headers, name="Holiday Home")
        response = client.delete(f"/properties/{first['id']}", headers=homeowner_headers)
        assert response.json()["new_primary_id"] == second["id"]

    def test_update_recalculates_completeness(self, client, homeowner_headers):
        prop = create_property(client, homeowner_headers)
        response = client.patch(
            f"/properties/{prop['id']}",
            json={"bathrooms": 2, "size_sqft": 1200, "full_address": "Tower 3, Apt 1204"},
            headers=homeowner_headers,
        )
        assert response.status_code == 200
        assert response.json()["profile_completeness"] == 70

    def test_invalid_emirate(self, client, homeowner_headers):
        response = client.post("/properties", json={"name": "Nowhere", "emirate": "gotham"}, headers=homeowner_headers)
        assert response.status_code == 422

    def test_owner_isolation(self, client, homeowner_headers, other_homeowner):
        prop = create_property(client, homeowner_headers)
        response = client.get(f"/properties/{prop['id']}", headers=auth_headers(other_homeowner))
        assert response.status_code == 404

    def test_pros_have_no_properties(self, client, pro_headers):
        assert client.get("/properties", headers=pro_headers).status_code == 403


class TestRooms:
    def test_room_lifecycle(self, client, homeowner_headers):
        prop = create_property(client, homeowner_headers)

        response = client.post(
            f"/properties/{prop['id']}/rooms", json={"name": "Main kitchen", "type": "kitchen"}, headers=homeowner_headers
        )
        assert response.status_code == 201
        body = response.json()
        assert body["profile_completeness"] == 50
        room_id = body["rooms"][0]["id"]

        response = client.patch(
            f"/properties/{prop['id']}/rooms/{room_id}", json={"notes": "Gas hob"}, headers=homeowner_headers
        )
        assert response.json()["rooms"][0]["notes"] == "Gas hob"
        assert response.json()["rooms"][0]["name"] == "Main kitchen"

        response = client.delete(f"/properties/{prop['id']}/rooms/{room_id}", headers=homeowner_headers)
        assert response.json()["rooms"] == []

    def test_unknown_room(self, client, homeowner_headers):
        prop = create_property(client, homeowner_headers)
        response = client.delete(f"/properties/{prop['id']}/rooms/missing", headers=homeowner_headers)
        assert response.status_code == 404

    def test_invalid_room_type(self, client, homeowner_headers):
        prop = create_property(client, homeowner_headers)
        response = client.post(
            f"/properties/{prop['id']}/rooms", json={"name": "Lab", "type": "laboratory"}, headers=homeowner_headers
        )
        assert response.status_code == 422
