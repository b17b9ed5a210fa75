"""
Integration tests for reviews and provider rating recalculation
"""

import pytest

from beautybook.domain.reviews.service import recalculate_provider_rating
from beautybook.models import ProviderProfile

from .conftest import auth_headers


def post_review(client, user, provider, rating=5, comment="Lovely visit", **extra):
    return client.post(
        "/api/reviews",
        json={"providerId": provider.id, "rating": rating, "comment": comment, **extra},
        headers=auth_headers(user),
    )


def provider_rating(db_session, provider):
    db_session.expire_all()
    fresh = db_session.get(ProviderProfile, provider.id)
    return fresh.average_rating, fresh.review_count


@pytest.mark.integration
class TestReviews:
    def test_create_updates_provider_rating(self, client, db_session, customer, other_customer, provider):
        assert post_review(client, customer, provider, rating=5).status_code == 201
        assert post_review(client, other_customer, provider, rating=2).status_code == 201

        assert provider_rating(db_session, provider) == (3.5, 2)

    def test_verified_with_completed_appointment(self, client, customer, provider, make_appointment):
        make_appointment("10:00", "11:00", status="COMPLETED")

        review = post_review(client, customer, provider).json()["review"]

        assert review["verified"] is True
        assert review["appointmentId"] is not None

    def test_unverified_without_completed_appointment(self, client, customer, provider, make_appointment):
        make_appointment("10:00", "11:00", status="CONFIRMED")

        assert post_review(client, customer, provider).json()["review"]["verified"] is False

    def test_one_review_per_provider(self, client, customer, provider):
        post_review(client, customer, provider)

        response = post_review(client, customer, provider)
        assert response.status_code == 400
        assert response.json()["error"] == "You have already reviewed this provider"

    @pytest.mark.parametrize("rating", [0, 6])
    def test_rating_range(self, client, customer, provider, rating):
        assert post_review(client, customer, provider, rating=rating).status_code == 400

    def test_comment_required(self, client, customer, provider):
        assert post_review(client, customer, provider, comment="   ").status_code == 400

    def test_update_and_delete_recalculate(self, client, db_session, customer, other_customer, provider):
        mine = post_review(client, customer, provider, rating=5).json()["review"]
        post_review(client, other_customer, provider, rating=3)

        updated = client.put(f"/api/reviews/{mine['id']}", json={"rating": 1}, headers=auth_headers(customer))
        assert updated.status_code == 200
        assert provider_rating(db_session, provider) == (2.0, 2)

        deleted = client.delete(f"/api/reviews/{mine['id']}", headers=auth_headers(customer))
        assert deleted.status_code == 200
        assert provider_rating(db_session, provider) == (3.0, 1)

    def test_only_author_can_edit(self, client, customer, other_customer, provider):
        review = post_review(client, customer, provider).json()["review"]

        response = client.put(f"/api/reviews/{review['id']}", json={"rating": 1}, headers=auth_headers(other_customer))
        assert response.status_code == 403
        assert client.delete(f"/api/reviews/{review['id']}", headers=auth_headers(other_customer)).status_code == 403

    def test_list_pagination_and_distribution(self, client, customer, other_customer, provider):
        post_review(client, customer, provider, rating=5)
        post_review(client, other_customer, provider, rating=4)

        data = client.get("/api/reviews", params={"providerId": provider.id, "limit": 1}).json()

        assert data["total"] == 2
        assert len(data["reviews"]) == 1
        assert data["pagination"]["hasMore"] is True
        assert data["ratingDistribution"] == {"1": 0, "2": 0, "3": 0, "4": 1, "5": 1}

    def test_recalculation_is_idempotent(self, client, db_session, customer, provider):
        post_review(client, customer, provider, rating=4)

        first = recalculate_provider_rating(db_session, provider.id)
        second = recalculate_provider_rating(db_session, provider.id)
        db_session.commit()

        assert first == second == (4.0, 1)

    def test_no_reviews_resets_rating(self, db_session, provider):
        provider.average_rating = 4.2
        provider.review_count = 9

        assert recalculate_provider_rating(db_session, provider.id) == (0.0, 0)
