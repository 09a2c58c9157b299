from __future__ import annotations

import pandas as pd
import pytest

from kpi_engine.config import EngineConfig
from kpi_engine.data import HISTORICAL_FILE, WEEKLY_FILE, parse_csv, prepare_context


HISTORICAL_CSV = """KPI,Platform,Channel,Month,Year,Actual,Target
Volume UC,Customer Portal,Total,Dec,2023,500,400
Volume UC,Customer Portal,Total,Jan,2024,100,120
Volume UC,Chatbot,,Jan,2024,20,10
Volume UC,Customer Portal,LKA,Jan,2024,40,50
Volume UC,Customer Portal,DSD,Jan,2024,30,30
Volume UC,Customer Portal,WHS,Jan,2024,20,25
Volume UC,Customer Portal,Horeca,Jan,2024,10,15
Volume UC,Customer Portal,Total,Feb,2024,110,100
Volume UC,Chatbot,,Feb,2024,15,20
Volume UC,Customer Portal,LKA,Feb,2024,50,40
Volume UC,Customer Portal,DSD,Feb,2024,25,25
Volume UC,Customer Portal,WHS,Feb,2024,20,20
Volume UC,Customer Portal,horeca,Feb,2024,15,15
Delivered Orders,Customer Portal,Total,Feb,2024,50,40
Delivered Orders,Chatbot,,Feb,2024,5,
Digital Order Share %,Customer Portal,Total,Feb,2024,42.5,
Digital Order Share %,Chatbot,,Feb,2024,7.5,
this row,is,malformed
"""

WEEKLY_CSV = """KPI,Platform,Channel,MTD_Actual,Full_Month_Target,Days_Passed,Total_Days_in_Month
Volume UC,Customer Portal,LKA,40,120,10,30
Volume UC,Customer Portal,DSD,30,90,10,30
Volume UC,Customer Portal,WHS,20,60,10,30
Volume UC,Customer Portal,Horeca,0,40,10,30
Volume UC,Chatbot,,90,310,10,30
Registered Customers,Customer Portal,LKA,500,600,10,30
Registered Customers,Customer Portal,DSD,300,300,10,30
"""


@pytest.fixture
def config() -> EngineConfig:
    return EngineConfig()


@pytest.fixture
def historical() -> pd.DataFrame:
    return parse_csv(HISTORICAL_CSV)


@pytest.fixture
def weekly() -> pd.DataFrame:
    return parse_csv(WEEKLY_CSV)


@pytest.fixture
def make_ctx(config, historical, weekly):
    def _make(with_historical: bool = True, with_weekly: bool = True):
        data_ctx = {
            "loaded": {"historical": with_historical, "weekly": with_weekly},
            "historical": historical if with_historical else pd.DataFrame(),
            "weekly": weekly if with_weekly else pd.DataFrame(),
        }
        return prepare_context(config, data_ctx)

    return _make


@pytest.fixture
def ctx(make_ctx):
    return make_ctx()


@pytest.fixture
def data_dir(tmp_path):
    (tmp_path / HISTORICAL_FILE).write_text(HISTORICAL_CSV, encoding="utf-8")
    (tmp_path / WEEKLY_FILE).write_text(WEEKLY_CSV, encoding="utf-8")
    return tmp_path
