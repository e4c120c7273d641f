"""
Tests for session-scoped macro storage.
"""

import threading

from bitreplay.command import MacroRegistry, parse


def test_names_are_case_insensitive():
    macros = MacroRegistry()
    macros.define("Flip", parse("NOT"))
    assert "flip" in macros
    assert "FLIP" in macros
    assert macros.get("fLiP") == parse("NOT")
    assert macros.names() == ["flip"]


def test_redefinition_overwrites():
    macros = MacroRegistry()
    macros.define("m", parse("NOT"))
    macros.define("M", parse("ROL 1"))
    assert len(macros) == 1
    assert macros.get("m").operation_id == "ROL"


def test_remove_and_clear():
    macros = MacroRegistry()
    macros.define("a", parse("NOT"))
    macros.define("b", parse("NOT"))
    assert macros.remove("A")
    assert not macros.remove("a")
    macros.clear()
    assert len(macros) == 0
    assert macros.get("b") is None


def test_concurrent_definitions():
    macros = MacroRegistry()

    def define(prefix):
        for i in range(100):
            macros.define(f"{prefix}{i}", parse("NOT"))

    threads = [threading.Thread(target=define, args=(p,)) for p in "abcd"]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(macros) == 400
