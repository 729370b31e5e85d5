"""Tests for the Flask /compile endpoint."""

import pytest

import c2
from app import app, ast_to_dict


@pytest.fixture
def client():
    app.config["TESTING"] = True
    with app.test_client() as client:
        yield client


def test_compile_ok(client):
    resp = client.post("/compile", json={"code": c2.TEST_PROGRAM})
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["errors"] == []
    assert data["warnings"] == []
    assert data["assembly"][:2] == [".globl main", "main:"]
    assert data["assembly"][-1] == "ret"
    assert data["symbol_table"] == {"a": -8}
    assert data["tokens"][0] == {"type": "INT", "value": "int", "lineno": 3}
    assert data["ast"]["function"]["name"] == "main"
    assert [s["type"] for s in data["ast"]["function"]["statements"]] == [
        "VarDecl", "ExprStatement", "Return",
    ]


def test_compile_syntax_error(client):
    resp = client.post("/compile", json={"code": "int main() { return 2 }"})
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["assembly"] == []
    assert data["errors"] == [
        "Syntax error (line 1): expected next token to be SEMICOLON, got RBRACE instead"
    ]


def test_compile_undeclared_variable(client):
    resp = client.post("/compile", json={"code": "int main() { return x; }"})
    data = resp.get_json()
    assert data["assembly"] == []
    assert data["errors"] == ["Codegen error (line 1): undeclared variable 'x'"]


@pytest.mark.parametrize("body", [{}, {"code": 5}, ["int main() {}"]])
def test_compile_bad_request(client, body):
    resp = client.post("/compile", json=body)
    assert resp.status_code == 400
    assert resp.get_json()["errors"]


def test_compile_unexpected_error(client, monkeypatch):
    def boom(code):
        raise RuntimeError("kaboom")

    monkeypatch.setattr(c2, "compile_source", boom)
    resp = client.post("/compile", json={"code": "int main() {}"})
    assert resp.status_code == 500
    assert resp.get_json()["errors"] == ["Unexpected error: kaboom"]


def test_ast_to_dict_expression():
    expr = c2.BinaryOp("=", c2.Variable("a"), c2.UnaryOp("-", c2.IntLiteral("2")))
    assert ast_to_dict(expr) == {
        "type": "BinaryOp",
        "op": "=",
        "left": {"type": "Variable", "name": "a"},
        "right": {
            "type": "UnaryOp",
            "op": "-",
            "operand": {"type": "IntLiteral", "value": "2"},
        },
    }


def test_ast_to_dict_declaration_without_initializer():
    assert ast_to_dict(c2.VarDecl("b")) == {"type": "VarDecl", "name": "b", "init_expr": None}
