"""Tests for the client reward catalog."""

from barbershop.models import Client, Visit


class TestRewardCatalog:
    def test_create_free_reward(self, client, service, owner_headers):
        payload = {
            "name": "Free Haircut",
            "description": "Tenth cut on the house",
            "visits_required": 10,
            "applicable_services": [service.id],
        }
        response = client.post("/rewards", json=payload, headers=owner_headers)
        assert response.status_code == 201
        data = response.json()
        assert data["reward_type"] == "free"
        assert data["discount_percentage"] is None
        assert data["applicable_services"] == [service.id]

    def test_discount_needs_percentage(self, client, owner_headers):
        payload = {"name": "Half", "description": "Half off", "visits_required": 5, "reward_type": "discount"}
        assert client.post("/rewards", json=payload, headers=owner_headers).status_code == 422

    def test_unknown_service(self, client, owner_headers):
        payload = {"name": "X", "description": "X", "visits_required": 5, "applicable_services": [42]}
        assert client.post("/rewards", json=payload, headers=owner_headers).status_code == 422

    def test_barber_cannot_create(self, client, barber_headers):
        payload = {"name": "X", "description": "X", "visits_required": 5}
        assert client.post("/rewards", json=payload, headers=barber_headers).status_code == 403

    def test_list_search_and_active_only(self, client, make_reward, barber_headers):
        make_reward(name="Free Haircut", visits_required=10)
        make_reward(name="Free Beard Trim", visits_required=5)
        make_reward(name="Retired", is_active=False)

        data = client.get("/rewards?search=free", headers=barber_headers).json()
        assert [r["name"] for r in data["rewards"]] == ["Free Beard Trim", "Free Haircut"]

        data = client.get("/rewards?active_only=true", headers=barber_headers).json()
        assert data["pagination"]["total"] == 2

    def test_get_not_found(self, client, owner_headers):
        assert client.get("/rewards/99", headers=owner_headers).status_code == 404


class TestRewardUpdates:
    def test_switch_to_discount(self, client, make_reward, owner_headers):
        reward = make_reward()
        response = client.put(
            f"/rewards/{reward.id}",
            json={"reward_type": "discount", "discount_percentage": 20},
            headers=owner_headers,
        )
        assert response.status_code == 200
        assert response.json()["reward_type"] == "discount"
        assert response.json()["discount_percentage"] == 20

    def test_switch_back_to_free_clears_discount(self, client, make_reward, owner_headers):
        reward = make_reward(reward_type="discount", discount_percentage=20)
        data = client.put(f"/rewards/{reward.id}", json={"reward_type": "free"}, headers=owner_headers).json()
        assert data["discount_percentage"] is None

    def test_toggle(self, client, make_reward, owner_headers):
        reward = make_reward()
        assert client.patch(f"/rewards/{reward.id}/toggle", headers=owner_headers).json()["is_active"] is False
        assert client.patch(f"/rewards/{reward.id}/toggle", headers=owner_headers).json()["is_active"] is True

    def test_delete_clears_selections(self, client, session, make_client, make_reward, owner_headers):
        reward = make_reward()
        picker = make_client(selected_reward_id=reward.id, loyalty_status="milestone_reached")

        assert client.delete(f"/rewards/{reward.id}", headers=owner_headers).status_code == 204

        session.expire_all()
        picker = session.get(Client, picker.id)
        assert picker.selected_reward_id is None
        assert picker.loyalty_status == "active"

    def test_delete_keeps_redeemed_visits(self, client, session, foreign_keys, customer, make_reward,
                                          owner_headers):
        reward = make_reward()
        visit = Visit(client_id=customer.id, barber="Mike", reward_redeemed=True, redeemed_reward_id=reward.id,
                      redemption={"reward_name": reward.name})
        session.add(visit)
        session.commit()

        assert client.delete(f"/rewards/{reward.id}", headers=owner_headers).status_code == 204

        session.expire_all()
        visit = session.get(Visit, visit.id)
        assert visit.redeemed_reward_id is None
        assert visit.redemption == {"reward_name": "Free Haircut"}


class TestRewardStatistics:
    def test_statistics(self, client, session, customer, make_reward, owner_headers):
        free = make_reward()
        make_reward(name="Half", reward_type="discount", discount_percentage=50, is_active=False)
        session.add(Visit(client_id=customer.id, barber="Mike", reward_redeemed=True, redeemed_reward_id=free.id))
        session.commit()

        data = client.get("/rewards/statistics", headers=owner_headers).json()
        assert data["total_rewards"] == 2
        assert data["active_rewards"] == 1
        assert data["total_redemptions"] == 1
        assert data["rewards_by_type"] == {"free": 1, "discount": 1}
        assert data["redemptions_by_reward"][0] == {"reward_id": free.id, "name": "Free Haircut", "redemptions": 1}
