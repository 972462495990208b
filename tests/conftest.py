from dataclasses import replace
from pathlib import Path

import pytest

from gagyebu.adapters import sheets
from gagyebu.config import AppConfig
from gagyebu.store import LocalStore


class _Request:
    def __init__(self, fn):
        self._fn = fn

    def execute(self):
        return self._fn()


class FakeValues:
    def __init__(self, service):
        self.service = service

    def get(self, spreadsheetId, range):
        self.service.calls.append(("get", range))

        def run():
            if self.service.error:
                raise self.service.error
            tab = range.split("!")[0]
            return {"values": self.service.tabs.get(range, self.service.tabs.get(tab, []))}

        return _Request(run)

    def append(self, spreadsheetId, range, valueInputOption, insertDataOption, body):
        self.service.calls.append(("append", range, body["values"]))

        def run():
            if self.service.error:
                raise self.service.error
            self.service.appended.append((range, body["values"][0]))
            return {"updates": {"updatedRange": f"{range}!A2:F2", "updatedRows": 1}}

        return _Request(run)

    def update(self, spreadsheetId, range, valueInputOption, body):
        self.service.calls.append(("update", range, body["values"]))
        return _Request(lambda: {})

    def clear(self, spreadsheetId, range, body):
        self.service.calls.append(("clear", range))
        return _Request(lambda: {})


class FakeSpreadsheets:
    def __init__(self, service):
        self.service = service

    def values(self):
        return FakeValues(self.service)


class FakeSheetsService:
    """Stands in for googleapiclient's sheets v4 resource. `tabs` maps a range (or quoted tab) to rows."""

    def __init__(self, tabs=None, error=None):
        self.tabs = tabs or {}
        self.error = error
        self.calls = []
        self.appended = []

    def spreadsheets(self):
        return FakeSpreadsheets(self)


LEDGER_HEADER = ["거래 유형", "카테고리", "금액", "날짜", "내용", "결제수단", "메모"]


@pytest.fixture
def make_config(tmp_path: Path):
    def _make(**overrides) -> AppConfig:
        cfg = AppConfig(
            data_dir=tmp_path,
            spreadsheet_id="",
            timezone="Asia/Seoul",
            expense_label="지출",
            income_label="입금",
            sheet_settings="설정",
            users=("성욱", "회진"),
            default_owner="회진",
            local_store_path=tmp_path / "local_store.json",
            admin_config_path=tmp_path / "admin_config.yaml",
        )
        return replace(cfg, **overrides)

    return _make


@pytest.fixture
def local_store(tmp_path: Path) -> LocalStore:
    return LocalStore(tmp_path / "local_store.json")


@pytest.fixture
def fake_service(monkeypatch):
    service = FakeSheetsService()
    monkeypatch.setattr(sheets, "_get_service", lambda write=False: service)
    return service


@pytest.fixture(autouse=True)
def _log_to_tmp(monkeypatch, tmp_path):
    monkeypatch.setenv("APP_LOG_PATH", str(tmp_path / "logs" / "test.log"))
