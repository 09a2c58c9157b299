from kpi_engine.config import DEFAULT_CHANNELS, EngineConfig, normalize_config


def test_normalize_config_defaults():
    assert normalize_config(None) == EngineConfig()
    assert normalize_config({"channels": [], "portal_platform": "  "}) == EngineConfig()


def test_normalize_config_overrides():
    cfg = normalize_config(
        {
            "channels": ["North", None, " South "],
            "chatbot_platform": "Assistant",
            "cumulative_kpis": ["Registered Customers", "Active Customers"],
        }
    )
    assert cfg.channels == ["North", "South"]
    assert cfg.chatbot_platform == "Assistant"
    assert cfg.is_cumulative("Active Customers")
    assert cfg.core_kpis == EngineConfig().core_kpis


def test_normalize_config_rejects_short_month_table():
    cfg = normalize_config({"month_order": ["Jan", "Feb"]})
    assert cfg.month_order == EngineConfig().month_order


def test_month_index():
    cfg = EngineConfig()
    assert cfg.month_index("Jan") == 0
    assert cfg.month_index("Dec") == 11
    assert cfg.month_index("jan") == -1
    assert cfg.month_index(None) == -1


def test_defaults_are_independent_copies():
    a, b = EngineConfig(), EngineConfig()
    assert a.channels == DEFAULT_CHANNELS
    assert a.channels is not b.channels
