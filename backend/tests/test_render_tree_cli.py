"""Command-line renderer."""
import json

import pytest

import render_tree

WITHDRAW = {
    "name": "withdraw",
    "args": [{"name": "amount", "nonce": 1, "type": "decimal"}],
    "body": [{
        "kind": "app", "fn": "enforce",
        "args": [
            {"kind": "app", "fn": ">", "args": [
                {"kind": "var", "node": {"name": "amount", "nonce": 1, "type": "decimal"}},
                {"kind": "lit", "value": 0},
            ]},
            {"kind": "lit", "value": "Amount must be positive"},
        ],
    }],
}


@pytest.fixture
def doc_file(tmp_path):
    def write(payload):
        path = tmp_path / "fn.json"
        path.write_text(json.dumps(payload), encoding="utf-8")
        return str(path)
    return write


def test_prints_tree(doc_file, capsys):
    assert render_tree.main([doc_file(WITHDRAW)]) == 0
    out = json.loads(capsys.readouterr().out)
    assert out["function"] == "withdraw"
    assert out["tree"]["node"] == "enforce"


def test_prints_leaves_for_a_list(doc_file, capsys):
    assert render_tree.main([doc_file([WITHDRAW, WITHDRAW]), "--leaves"]) == 0
    out = capsys.readouterr().out
    assert out.count('"constraint-violation"') == 2


def test_prints_smtlib(doc_file, capsys):
    assert render_tree.main([doc_file(WITHDRAW), "--smt"]) == 0
    out = capsys.readouterr().out
    assert ";;; withdraw" in out
    assert "(declare-fun amount1 () Real)" in out
    assert "(assert (not (> amount1 0.0)))" in out


def test_unanalyzable_leaf_sets_exit_status(doc_file):
    fun = dict(WITHDRAW, body=[{"kind": "app", "fn": "transfer", "native": False}])
    assert render_tree.main([doc_file(fun)]) == 1


def test_malformed_document(doc_file, capsys):
    assert render_tree.main([doc_file({"name": "f", "body": [{"kind": "loop"}]})]) == 2
    assert "malformed" in capsys.readouterr().err


def test_duplicate_parameters(doc_file, capsys):
    param = {"name": "x", "nonce": 0, "type": "integer"}
    assert render_tree.main([doc_file({"name": "f", "args": [param, param]})]) == 2
    assert "duplicate-binding" in capsys.readouterr().err
