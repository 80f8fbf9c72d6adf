"""HTTP surface tests using the Flask test client."""
from datetime import datetime

import pytest

from app.crm import create_app
from app.crm.db import make_engine, session_scope
from app.crm.models import Base, CustomerRecord
from app.crm.routes import CrmContext
from app.crm.store import CustomerStore
from app.crm.views import ViewRenderer


def _set_env(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")
    monkeypatch.delenv("POSTGRES_URL", raising=False)


@pytest.fixture()
def app(tmp_path, monkeypatch):
    _set_env(tmp_path, monkeypatch)
    app = create_app()
    engine = app.extensions["sqlalchemy_engine"]
    Base.metadata.create_all(bind=engine)
    yield app
    engine.dispose()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def jane_id(app):
    with session_scope(app.extensions["sqlalchemy_engine"]) as s:
        row = CustomerRecord(
            first_name="Jane",
            last_name="Doe",
            birth_date=datetime(1990, 5, 2, 8, 30),
            gender="Female",
            email="jane.doe@example.com",
            address="1 Main St",
        )
        s.add(row)
        s.flush()
        return row.id


def _form(**overrides):
    data = {
        "firstName": "John",
        "lastName": "Smith",
        "birthDate": "1985-11-20",
        "gender": "Male",
        "email": "john.smith@example.com",
        "address": "9 Elm Rd",
    }
    data.update(overrides)
    return data


def _names(app):
    with session_scope(app.extensions["sqlalchemy_engine"]) as s:
        return sorted((r.first_name, r.last_name) for r in s.query(CustomerRecord).all())


def test_health_ok(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json["ok"] is True
    assert client.get("/healthz").data == b"ok"


def test_index_redirects_to_listing(client):
    r = client.get("/")
    assert r.status_code == 303
    assert r.headers["Location"].endswith("/customers")


def test_list_customers(client, jane_id):
    r = client.get("/customers")
    assert r.status_code == 200
    assert b"Jane" in r.data
    assert b"1990-05-02" in r.data
    assert b"08:30" not in r.data


def test_list_customers_empty(client):
    r = client.get("/customers")
    assert r.status_code == 200
    assert b"No customers found." in r.data


def test_list_customers_wrong_method(client):
    r = client.post("/customers")
    assert r.status_code == 405
    assert r.data == b"Method Not Allowed\n"


def test_unknown_route_is_plain_404(client):
    r = client.get("/nope")
    assert r.status_code == 404
    assert r.data == b"Not Found\n"


class TestEdit:
    def test_edit_form(self, client, jane_id):
        r = client.get(f"/editcustomer?id={jane_id}")
        assert r.status_code == 200
        assert b'name="ID"' in r.data
        assert b'value="1990-05-02"' in r.data

    @pytest.mark.parametrize("query", ["", "?id=", "?id=abc", "?id=-1", "?id=0"])
    def test_edit_form_bad_id(self, client, query):
        assert client.get(f"/editcustomer{query}").status_code == 400

    @pytest.mark.parametrize("raw_id", ["+1", "1_0", "\u0661", "99999999999999999999"])
    def test_edit_form_id_must_be_ascii_digits_in_range(self, client, jane_id, raw_id):
        r = client.get("/editcustomer", query_string={"id": raw_id})
        assert r.status_code == 400
        assert r.data == b"Bad Request\n"

    def test_edit_form_not_found(self, client):
        assert client.get("/editcustomer?id=999").status_code == 404

    def test_edit_action(self, app, client, jane_id):
        r = client.post("/editcustomeraction", data=_form(ID=str(jane_id), firstName="Janet", lastName="Doe"))
        assert r.status_code == 303
        assert r.headers["Location"].endswith("/customers")
        assert _names(app) == [("Janet", "Doe")]

    def test_edit_action_requires_post(self, client, jane_id):
        assert client.get(f"/editcustomeraction?ID={jane_id}").status_code == 405

    def test_edit_action_missing_id(self, client):
        assert client.post("/editcustomeraction", data=_form()).status_code == 400

    @pytest.mark.parametrize("raw_id", ["99999999999999999999", "\u0661", "+1"])
    def test_edit_action_rejects_malformed_id(self, app, client, jane_id, raw_id):
        r = client.post("/editcustomeraction", data=_form(ID=raw_id))
        assert r.status_code == 400
        assert _names(app) == [("Jane", "Doe")]

    def test_edit_action_invalid_fields_write_nothing(self, app, client, jane_id):
        r = client.post("/editcustomeraction", data=_form(ID=str(jane_id), gender="null"))
        assert r.status_code == 400
        assert r.data == b"Bad Request\n"
        assert _names(app) == [("Jane", "Doe")]

    def test_edit_action_bad_birth_date(self, client, jane_id):
        r = client.post("/editcustomeraction", data=_form(ID=str(jane_id), birthDate="20/11/1985"))
        assert r.status_code == 400

    def test_edit_action_unknown_id(self, client):
        assert client.post("/editcustomeraction", data=_form(ID="4242")).status_code == 404

    def test_edit_action_statement_failure(self, app, client, jane_id):
        with app.extensions["sqlalchemy_engine"].begin() as conn:
            conn.exec_driver_sql(
                "CREATE TRIGGER customers_block_update BEFORE UPDATE ON customers "
                "BEGIN SELECT RAISE(ABORT, 'update blocked'); END;"
            )
        r = client.post("/editcustomeraction", data=_form(ID=str(jane_id), firstName="Janet"))
        assert r.status_code == 500
        assert r.data == b"Internal Server Error\n"
        assert _names(app) == [("Jane", "Doe")]
        # The app keeps serving after the failed write.
        assert client.get("/customers").status_code == 200


class TestCreate:
    def test_create_form(self, client):
        r = client.get("/createcustomer")
        assert r.status_code == 200
        assert b'name="firstName"' in r.data
        assert b'name="ID"' not in r.data

    def test_create_action(self, app, client):
        r = client.post("/createcustomeraction", data=_form())
        assert r.status_code == 303
        assert _names(app) == [("John", "Smith")]

    def test_create_action_without_birth_date(self, app, client):
        r = client.post("/createcustomeraction", data=_form(birthDate=""))
        assert r.status_code == 303
        r = client.get("/customers")
        assert b"John" in r.data

    def test_create_action_ignores_submitted_id(self, app, client, jane_id):
        r = client.post("/createcustomeraction", data=_form(ID=str(jane_id)))
        assert r.status_code == 303
        assert _names(app) == [("Jane", "Doe"), ("John", "Smith")]

    def test_create_action_requires_post(self, client):
        assert client.get("/createcustomeraction").status_code == 405

    @pytest.mark.parametrize(
        "overrides",
        [
            {"firstName": ""},
            {"firstName": "x" * 101},
            {"lastName": ""},
            {"gender": "female"},
            {"address": ""},
            {"email": "plainaddress"},
        ],
    )
    def test_create_action_invalid(self, app, client, overrides):
        r = client.post("/createcustomeraction", data=_form(**overrides))
        assert r.status_code == 400
        assert _names(app) == []

    def test_create_action_statement_failure(self, app, client):
        with app.extensions["sqlalchemy_engine"].begin() as conn:
            conn.exec_driver_sql("DROP TABLE customers")
        assert client.post("/createcustomeraction", data=_form()).status_code == 500


class TestSearch:
    def test_search_get(self, client, jane_id):
        r = client.get("/search", query_string={"param": "Jane Nobody"})
        assert r.status_code == 200
        assert b"jane.doe@example.com" in r.data
        assert b"Jane Nobody" in r.data

    def test_search_post_matches_last_name(self, client, jane_id):
        r = client.post("/search", data={"param": "Nobody Doe"})
        assert r.status_code == 200
        assert b"jane.doe@example.com" in r.data

    def test_search_no_match(self, client, jane_id):
        r = client.get("/search", query_string={"param": "Nobody Nothing"})
        assert r.status_code == 200
        assert b"No customers found." in r.data

    @pytest.mark.parametrize("param", ["", "   "])
    def test_search_empty(self, client, param):
        assert client.get("/search", query_string={"param": param}).status_code == 400

    def test_search_missing_param(self, client):
        assert client.get("/search").status_code == 400

    def test_search_single_token_is_controlled(self, client, jane_id):
        r = client.get("/search", query_string={"param": "Jane"})
        assert r.status_code == 400
        assert r.data == b"Bad Request\n"
        assert client.get("/customers").status_code == 200


def test_injected_context(tmp_path, monkeypatch):
    _set_env(tmp_path, monkeypatch)
    engine = make_engine(f"sqlite:///{tmp_path/'injected.db'}")
    Base.metadata.create_all(bind=engine)
    store = CustomerStore(engine)

    app = create_app(context=CrmContext(store=store, views=ViewRenderer()))
    client = app.test_client()
    assert client.post("/createcustomeraction", data=_form()).status_code == 303
    assert [c.first_name for c in store.list_all()] == ["John"]
    assert app.extensions["sqlalchemy_engine"] is engine
    engine.dispose()
