import logging

from crudkit import create_app
from crudkit.config import TestingConfig, get_bool_env, get_database_uri, get_int_env


def test_postgres_scheme_is_rewritten(monkeypatch):
    monkeypatch.setenv('DATABASE_URI', 'postgres://u:p@db/app')
    assert get_database_uri('sqlite:///x.db') == 'postgresql://u:p@db/app'


def test_database_uri_falls_back_to_default(monkeypatch):
    monkeypatch.delenv('DATABASE_URI', raising=False)
    assert get_database_uri('sqlite:///x.db') == 'sqlite:///x.db'


def test_env_helpers(monkeypatch):
    monkeypatch.setenv('CRUDKIT_FLAG', 'Yes')
    monkeypatch.setenv('CRUDKIT_NUMBER', 'not-a-number')
    assert get_bool_env('CRUDKIT_FLAG', False) is True
    assert get_int_env('CRUDKIT_NUMBER', 7) == 7


def test_create_app_uses_testing_config():
    app = create_app('testing')
    assert app.config['TESTING'] is True
    assert app.config['SQLALCHEMY_DATABASE_URI'] == TestingConfig.SQLALCHEMY_DATABASE_URI
    assert 'sqlalchemy' in app.extensions


def test_startup_is_logged_once(caplog):
    with caplog.at_level(logging.INFO):
        create_app('testing')

    startup = [r for r in caplog.records if 'startup' in r.getMessage()]
    assert len(startup) == 1
    assert 'TestingConfig' in startup[0].getMessage()
