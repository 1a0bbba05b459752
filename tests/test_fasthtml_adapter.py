"""
Tests for serving a form factory on FastHTML routes.
"""

import pytest
from fasthtml.common import FastHTML
from sqlmodel import Session, select
from starlette.testclient import TestClient

from starform.adapters.fasthtml import form_url, register_form
from starform.factory import FormFactory
from starform.persistence import SQLModelPersistence

from .models import Article


def article_form(form, article):
    form.add_text("title", "Title")
    form.add_text("views", "Views")
    form.add_select("author", "Author", items={1: "Ada", 2: "Grace"}, prompt="Choose")
    form.add_multiselect("tags", "Tags", items={1: "python", 2: "sql", 3: "web"})


def _client(engine, success_url=None):
    app = FastHTML(secret_key="starform-tests")
    factory = FormFactory(article_form, name="article")
    register_form(
        app.route, "/articles", factory, Article,
        lambda: SQLModelPersistence.opener(engine),
        success_url=success_url,
    )
    return TestClient(app)


def test_get_renders_existing_entity(engine):
    response = _client(engine).get("/articles", params={"id": 1})

    assert response.status_code == 200
    assert 'class="form-horizontal"' in response.text
    assert 'value="Hello"' in response.text
    assert 'action="/articles?id=1"' in response.text
    assert ">Save</button>" in response.text


def test_get_renders_insert_form(engine):
    response = _client(engine).get("/articles")
    assert response.status_code == 200
    assert ">Create</button>" in response.text


def test_get_unknown_entity_is_404(engine):
    assert _client(engine).get("/articles", params={"id": 99}).status_code == 404


def test_post_updates_and_redirects(engine):
    response = _client(engine).post(
        "/articles?id=1",
        data={"title": "Edited", "views": "5", "author": "2", "tags": ["1", "3"], "save": "Save"},
        follow_redirects=False,
    )

    assert response.status_code == 303
    assert response.headers["location"] == "/articles?id=1"
    with Session(engine) as session:
        article = session.get(Article, 1)
        assert article.title == "Edited"
        assert article.author_id == 2
        assert sorted(tag.label for tag in article.tags) == ["python", "sql", "web"]


def test_post_inserts(engine):
    client = _client(engine, success_url=lambda article: f"/articles/{article.id}/done")
    response = client.post(
        "/articles",
        data={"title": "Second", "views": "0", "author": "1"},
        follow_redirects=False,
    )

    assert response.status_code == 303
    assert response.headers["location"] == "/articles/2/done"
    with Session(engine) as session:
        assert session.exec(select(Article).where(Article.title == "Second")).one().author_id == 1


def test_post_invalid_rerenders_with_errors(engine):
    response = _client(engine).post("/articles?id=1", data={"title": "", "views": "lots"})

    assert response.status_code == 200
    assert "has-error" in response.text
    assert "This field is required." in response.text
    with Session(engine) as session:
        assert session.get(Article, 1).title == "Hello"


def test_post_single_multiselect_value(engine):
    response = _client(engine).post(
        "/articles?id=1",
        data={"title": "Hello", "views": "3", "author": "1", "tags": "3"},
        follow_redirects=False,
    )

    assert response.status_code == 303
    with Session(engine) as session:
        assert sorted(tag.label for tag in session.get(Article, 1).tags) == ["python", "sql", "web"]


@pytest.mark.parametrize("key, url", [
    (None, "/articles"),
    ("", "/articles"),
    (3, "/articles?id=3"),
])
def test_form_url(key, url):
    assert form_url("/articles", key) == url
