import pytest

from sales_ledger.settings import EngineSettings
from sales_ledger.store import InMemoryStore, JsonDocumentStore
from sales_ledger.workbook_store import WorkbookStore


def test_defaults_without_environment():
    settings = EngineSettings.from_env({})

    assert settings == EngineSettings()
    assert settings.store_kind == "json"
    assert settings.upload_token is None


def test_environment_overrides():
    settings = EngineSettings.from_env(
        {
            "SALES_LEDGER_STORE": "/data/ledgers.xlsx",
            "SALES_LEDGER_STORE_KIND": " Workbook ",
            "SALES_LEDGER_RETRIES": "5",
            "SALES_LEDGER_BACKOFF": "0.25",
            "SALES_LEDGER_RETENTION_YEARS": "2",
            "SALES_LEDGER_TOKEN": "s3cret",
        }
    )

    assert settings.store_path == "/data/ledgers.xlsx"
    assert settings.store_kind == "workbook"
    assert settings.retry_attempts == 5
    assert settings.retry_backoff == 0.25
    assert settings.retention_years == 2
    assert settings.upload_token == "s3cret"


@pytest.mark.parametrize(
    "env, name",
    [
        ({"SALES_LEDGER_RETRIES": "many"}, "SALES_LEDGER_RETRIES"),
        ({"SALES_LEDGER_BACKOFF": "soon"}, "SALES_LEDGER_BACKOFF"),
        ({"SALES_LEDGER_STORE_KIND": "postgres"}, "SALES_LEDGER_STORE_KIND"),
    ],
)
def test_invalid_values_name_the_variable(env, name):
    with pytest.raises(ValueError, match=name):
        EngineSettings.from_env(env)


def test_open_store_by_kind(tmp_path):
    assert isinstance(EngineSettings(store_kind="memory").open_store(), InMemoryStore)

    json_store = EngineSettings(store_path=str(tmp_path)).open_store()
    assert isinstance(json_store, JsonDocumentStore)
    assert json_store.directory == tmp_path

    workbook_store = EngineSettings(store_path=str(tmp_path), store_kind="workbook").open_store()
    assert isinstance(workbook_store, WorkbookStore)
    assert workbook_store.workbook_path == tmp_path / "ledgers.xlsx"
