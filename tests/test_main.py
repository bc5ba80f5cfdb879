import otpauth.main as main
from otpauth.database import get_engine


def test_importing_main_builds_no_app():
    assert "app" not in vars(main)


def test_default_app_is_built_once_on_first_access(monkeypatch):
    built = []
    sentinel = object()

    def fake_create_app():
        built.append(sentinel)
        return sentinel

    monkeypatch.setattr(main, "_app", None)
    monkeypatch.setattr(main, "create_app", fake_create_app)

    assert built == []
    assert main.app is sentinel
    assert main.get_app() is sentinel
    assert len(built) == 1


def test_default_engine_is_shared():
    assert get_engine() is get_engine()
