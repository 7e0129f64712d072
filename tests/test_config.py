from config import Settings, validate_settings


class TestSettings:
    def test_defaults(self):
        current = Settings()
        assert current.DECISION_STORE == "file"
        assert current.TOP_TAGS_LIMIT == 20
        assert current.RECENT_COMPLETED_CAP == 10
        assert current.decisions_path.endswith("decisions.json")

    def test_cors_origin_list(self):
        assert Settings(CORS_ORIGINS=None).cors_origin_list() == ["*"]
        assert Settings(CORS_ORIGINS=" https://a.test , ,https://b.test").cors_origin_list() == [
            "https://a.test", "https://b.test"
        ]

    def test_validate_rejects_unknown_values(self):
        errors, _ = validate_settings(Settings(DECISION_STORE="redis", INSIGHT_LOCALE="fr", TOP_TAGS_LIMIT=0))
        assert len(errors) == 3

    def test_validate_warns_on_open_cors_in_production(self):
        errors, warnings = validate_settings(Settings(DEBUG=False, CORS_ORIGINS=None))
        assert errors == []
        assert warnings
