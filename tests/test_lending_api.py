"""HTTP tests for borrowing and returning books.

Runs the FastAPI app against a temporary SQLite database and walks the
lending scenarios end to end: status codes, error bodies and the ledger
views on books and users. One test drives the shared service directly
to race two borrows against the SQLite ledger.
"""

from __future__ import annotations

import asyncio

import pytest

from biblioteca_api.app.core.errors import LendingError, LendingErrorKind
from biblioteca_api.app.schemas.author import AuthorCreate
from biblioteca_api.app.schemas.book import BookCreate
from biblioteca_api.app.schemas.user import UserCreate
from biblioteca_api.app.services.author_service import AuthorService
from biblioteca_api.app.services.book_service import BookService
from biblioteca_api.app.services.gateways import StoreCatalogGateway, StoreMembershipGateway
from biblioteca_api.app.services.ledger import LendingLedger
from biblioteca_api.app.services.lending_service import LendingService, get_lending_service
from biblioteca_api.app.services.role_service import RoleService
from biblioteca_api.app.services.user_service import UserService
from biblioteca_api.app.main import app

from fakes import UNKNOWN, FailingLedger


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _create_role(client, name: str, quota: int) -> str:
    response = client.post("/api/v1/users/roles/", json={"name": name, "num_borrowable_books": quota})
    assert response.status_code == 201, response.text
    return response.json()["id"]


def _create_user(client, username: str, role_id: str) -> str:
    response = client.post("/api/v1/users/", json={"username": username, "user_role_id": role_id})
    assert response.status_code == 201, response.text
    return response.json()["id"]


def _create_book(client, author_id: str, name: str) -> str:
    response = client.post("/api/v1/books/", json={"name": name, "author_id": author_id})
    assert response.status_code == 201, response.text
    return response.json()["id"]


def _borrow(client, book_id, user_id):
    return client.post(f"/api/v1/borrow/books/{book_id}", json={"user_id": user_id})


def _return(client, book_id, user_id):
    return client.post(f"/api/v1/return/books/{book_id}", json={"user_id": user_id})


@pytest.fixture
def library(client):
    """One author with two books, and two users with a quota of one book."""
    author = client.post("/api/v1/authors/", json={"name": "Miguel de Cervantes", "country": "ES"})
    assert author.status_code == 201, author.text
    author_id = author.json()["id"]
    role_id = _create_role(client, "single", 1)
    return {
        "book_a": _create_book(client, author_id, "Don Quixote"),
        "book_b": _create_book(client, author_id, "Novelas ejemplares"),
        "user_1": _create_user(client, "sancho", role_id),
        "user_2": _create_user(client, "dulcinea", role_id),
    }


# ===========================================================================
# Borrow / return
# ===========================================================================


def test_borrow_available_book(client, library):
    response = _borrow(client, library["book_a"], library["user_1"])

    assert response.status_code == 202
    body = response.json()
    assert body["action"] == "borrowed"
    assert body["book_id"] == library["book_a"]
    assert body["user_id"] == library["user_1"]
    assert body["closes_event_id"] is None

    history = client.get(f"/api/v1/books/{library['book_a']}/lending/history").json()
    assert [event["id"] for event in history] == [body["id"]]


def test_borrow_borrowed_book_conflicts(client, library):
    _borrow(client, library["book_a"], library["user_1"])

    response = _borrow(client, library["book_a"], library["user_2"])

    assert response.status_code == 409
    assert response.json() == {
        "code": "already_borrowed",
        "message": f"book {library['book_a']} has already been borrowed",
        "book_id": library["book_a"],
        "user_id": library["user_2"],
    }


def test_return_makes_book_available(client, library):
    borrow = _borrow(client, library["book_a"], library["user_1"]).json()

    response = _return(client, library["book_a"], library["user_1"])

    assert response.status_code == 202
    body = response.json()
    assert body["action"] == "returned"
    assert body["closes_event_id"] == borrow["id"]

    status = client.get(f"/api/v1/books/{library['book_a']}/lending").json()
    assert status["available"] is True
    assert status["holder_user_id"] is None

    assert _borrow(client, library["book_a"], library["user_2"]).status_code == 202


def test_quota_exceeded(client, library):
    _borrow(client, library["book_a"], library["user_1"])

    response = _borrow(client, library["book_b"], library["user_1"])

    assert response.status_code == 409
    body = response.json()
    assert body["code"] == "quota_exceeded"
    assert body["max_borrowable"] == 1
    assert body["user_id"] == library["user_1"]


def test_borrow_unknown_book(client, library):
    response = _borrow(client, UNKNOWN, library["user_1"])

    assert response.status_code == 404
    assert response.json()["code"] == "book_not_found"
    count = client.get(f"/api/v1/users/{library['user_1']}/borrowed-count").json()
    assert count["currently_held"] == 0


def test_borrow_unknown_user(client, library):
    response = _borrow(client, library["book_a"], UNKNOWN)

    assert response.status_code == 404
    assert response.json()["code"] == "user_not_found"


def test_return_by_someone_else(client, library):
    _borrow(client, library["book_a"], library["user_1"])

    response = _return(client, library["book_a"], library["user_2"])

    assert response.status_code == 409
    assert response.json()["code"] == "not_borrowed_by_user"
    status = client.get(f"/api/v1/books/{library['book_a']}/lending").json()
    assert status["holder_user_id"] == library["user_1"]


def test_repeated_returns_append_nothing(client, library):
    _borrow(client, library["book_a"], library["user_1"])
    _return(client, library["book_a"], library["user_1"])

    for _ in range(3):
        response = _return(client, library["book_a"], library["user_1"])
        assert response.status_code == 409
        assert response.json()["code"] == "already_returned"

    history = client.get(f"/api/v1/books/{library['book_a']}/lending/history").json()
    assert [event["action"] for event in history] == ["borrowed", "returned"]


def test_malformed_request_is_422(client, library):
    assert _borrow(client, "not-a-uuid", library["user_1"]).status_code == 422
    assert client.post(f"/api/v1/borrow/books/{library['book_a']}", json={}).status_code == 422


# ===========================================================================
# Ledger views
# ===========================================================================


def test_book_lending_status(client, library):
    status = client.get(f"/api/v1/books/{library['book_b']}/lending").json()
    assert status == {
        "book_id": library["book_b"],
        "available": True,
        "holder_user_id": None,
        "since": None,
    }

    borrow = _borrow(client, library["book_b"], library["user_2"]).json()
    status = client.get(f"/api/v1/books/{library['book_b']}/lending").json()
    assert status["available"] is False
    assert status["holder_user_id"] == library["user_2"]
    assert status["since"] == borrow["timestamp"]


def test_lending_views_of_unknown_ids(client, library):
    assert client.get(f"/api/v1/books/{UNKNOWN}/lending").status_code == 404
    assert client.get(f"/api/v1/books/{UNKNOWN}/lending/history").status_code == 404
    response = client.get(f"/api/v1/users/{UNKNOWN}/borrowed-count")
    assert response.status_code == 404
    assert response.json()["code"] == "user_not_found"


def test_borrowed_count(client, library):
    _borrow(client, library["book_a"], library["user_1"])

    response = client.get(f"/api/v1/users/{library['user_1']}/borrowed-count")

    assert response.status_code == 200
    assert response.json() == {
        "user_id": library["user_1"],
        "currently_held": 1,
        "max_borrowable": 1,
    }


# ===========================================================================
# Concurrency
# ===========================================================================


@pytest.mark.asyncio
async def test_concurrent_borrows_against_sqlite(database):
    author = await AuthorService.create_author(AuthorCreate(name="Lope de Vega", country="ES"))
    book = await BookService.create_book(BookCreate(name="Fuenteovejuna", author_id=author.id))
    member = next(r for r in await RoleService.list_roles() if r.name == "member")
    users = [
        await UserService.create_user(UserCreate(username=name, user_role_id=member.id))
        for name in ("sancho", "dulcinea")
    ]
    service = get_lending_service()

    results = await asyncio.gather(
        *(service.borrow_book(str(book.id), str(user.id)) for user in users),
        return_exceptions=True,
    )

    errors = [r for r in results if isinstance(r, LendingError)]
    events = [r for r in results if not isinstance(r, BaseException)]
    assert len(events) == 1
    assert [e.kind for e in errors] == [LendingErrorKind.ALREADY_BORROWED]
    history = await LendingLedger().history_for_book(str(book.id))
    assert history == events
    assert len(service.book_locks) == 0


# ===========================================================================
# Storage failures
# ===========================================================================


def test_storage_failure_is_opaque_500(client, library):
    ledger = FailingLedger()
    app.dependency_overrides[get_lending_service] = lambda: LendingService(
        StoreCatalogGateway(), StoreMembershipGateway(), ledger
    )

    response = _borrow(client, library["book_a"], library["user_1"])

    assert response.status_code == 500
    assert response.json() == {
        "code": "storage",
        "message": "internal server error, check logs for more details",
    }
    assert ledger.events == []


def test_default_service_is_shared(client):
    assert get_lending_service() is get_lending_service()
