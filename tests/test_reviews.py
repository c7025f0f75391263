"""
Client reviews of completed bookings
"""
from conftest import login, make_booking, make_user
from domestiq.extensions import db
from domestiq.models import Notification, Review


def _review(client, booking, rating=5, **extra):
    return client.post("/api/v1/reviews", json={"booking_id": booking.id, "rating": rating, **extra})


class TestCreateReview:
    def test_client_reviews_completed_booking(self, client, client_user, worker_user):
        booking = make_booking(client_user, worker_user, status="completed")
        login(client, client_user)

        response = _review(client, booking, rating=4, comment="  Spotless kitchen ", punctuality_rating="5")

        assert response.status_code == 201
        review = response.get_json()["review"]
        assert review["rating"] == 4
        assert review["punctuality_rating"] == 5
        assert review["professionalism_rating"] is None
        assert review["comment"] == "Spotless kitchen"
        assert review["reviewee_id"] == worker_user.id
        assert review["reviewer"] == {"id": client_user.id, "full_name": "Thandi Mokoena"}

        notification = Notification.query.filter_by(user_id=worker_user.id).one()
        assert notification.type == "review_received"
        assert notification.message == "You received a 4-star review."
        assert notification.data == {"review_id": review["id"], "booking_id": booking.id}

    def test_booking_must_be_completed(self, client, client_user, worker_user):
        booking = make_booking(client_user, worker_user, status="confirmed")
        login(client, client_user)

        response = _review(client, booking)

        assert response.status_code == 400
        assert Review.query.count() == 0

    def test_only_the_booking_client_can_review(self, client, client_user, worker_user):
        booking = make_booking(client_user, worker_user, status="completed")
        stranger = make_user("client", "stranger@example.co.za")
        login(client, stranger)

        assert _review(client, booking).status_code == 403

        login(client, worker_user)
        assert _review(client, booking).status_code == 403

    def test_second_review_conflicts(self, client, client_user, worker_user):
        booking = make_booking(client_user, worker_user, status="completed")
        login(client, client_user)
        first = _review(client, booking).get_json()["review"]

        response = _review(client, booking, rating=1)

        assert response.status_code == 409
        assert response.get_json()["review_id"] == first["id"]
        assert Review.query.count() == 1

    def test_rating_validation(self, client, client_user, worker_user):
        booking = make_booking(client_user, worker_user, status="completed")
        login(client, client_user)

        for bad in (0, 6, 4.5, True, "great"):
            assert _review(client, booking, rating=bad).status_code == 400
        assert _review(client, booking, quality_rating=9).status_code == 400
        assert client.post("/api/v1/reviews", json={"rating": 5}).status_code == 400
        assert client.post("/api/v1/reviews", json={"booking_id": True, "rating": 5}).status_code == 400
        assert Review.query.count() == 0

    def test_unknown_booking(self, client, client_user):
        login(client, client_user)

        response = client.post("/api/v1/reviews", json={"booking_id": 999, "rating": 5})

        assert response.status_code == 404


class TestListReviews:
    def test_paginates_newest_first_with_average(self, client, client_user, worker_user):
        login(client, client_user)
        for days, rating in ((2, 5), (4, 4), (6, 3)):
            booking = make_booking(client_user, worker_user, status="completed", starts_in_days=days)
            assert _review(client, booking, rating=rating).status_code == 201

        body = client.get(f"/api/v1/reviews?reviewee_id={worker_user.id}&limit=2").get_json()

        assert [review["rating"] for review in body["reviews"]] == [3, 4]
        assert body["pagination"] == {"total": 3, "limit": 2, "offset": 0}
        assert body["average_rating"] == 4.0
        assert body["rating_count"] == 3

        page_two = client.get(f"/api/v1/reviews?reviewee_id={worker_user.id}&limit=2&offset=2").get_json()
        assert [review["rating"] for review in page_two["reviews"]] == [5]

    def test_hidden_reviews_are_not_listed(self, client, client_user, worker_user):
        booking = make_booking(client_user, worker_user, status="completed")
        login(client, client_user)
        review_id = _review(client, booking).get_json()["review"]["id"]
        review = db.session.get(Review, review_id)
        review.is_public = False
        db.session.commit()

        body = client.get(f"/api/v1/reviews?reviewee_id={worker_user.id}").get_json()

        assert body["reviews"] == []
        assert body["rating_count"] == 0

    def test_reviewee_is_required(self, client, client_user):
        login(client, client_user)

        assert client.get("/api/v1/reviews").status_code == 400
        assert client.get("/api/v1/reviews?reviewee_id=abc").status_code == 400
