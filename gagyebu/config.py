from dataclasses import dataclass
from pathlib import Path
import os


@dataclass(frozen=True)
class AppConfig:
    data_dir: Path
    spreadsheet_id: str
    timezone: str
    expense_label: str
    income_label: str
    sheet_settings: str
    users: tuple[str, ...]
    default_owner: str
    local_store_path: Path
    admin_config_path: Path

    @property
    def use_sheets(self) -> bool:
        return bool(self.spreadsheet_id)


def _split_users(raw: str) -> tuple[str, ...]:
    return tuple(u.strip() for u in raw.split(",") if u.strip())


def load_config() -> AppConfig:
    base = Path(os.environ.get("APP_DATA_DIR", "./data")).resolve()
    spreadsheet_id = os.environ.get("GOOGLE_SHEETS_SPREADSHEET_ID") or os.environ.get("SPREADSHEET_ID", "")
    return AppConfig(
        data_dir=base,
        spreadsheet_id=spreadsheet_id.strip(),
        timezone=os.environ.get("APP_TIMEZONE", "Asia/Seoul"),
        expense_label=os.environ.get("EXPENSE_LABEL", "지출"),
        income_label=os.environ.get("INCOME_LABEL", "입금"),
        sheet_settings=os.environ.get("SHEET_SETTINGS", "설정"),
        users=_split_users(os.environ.get("BUDGET_USERS", "성욱,회진")),
        default_owner=os.environ.get("DEFAULT_OWNER", "회진"),
        local_store_path=Path(os.environ.get("LOCAL_STORE_PATH", str(base / "local_store.json"))),
        admin_config_path=Path(os.environ.get("ADMIN_CONFIG_PATH", str(base / "admin_config.yaml"))),
    )
