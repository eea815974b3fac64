PAGE_PREFIX = "browser.page"


class NamingPolicy:
    def __init__(self, session_config):
        self.session_config = session_config

    def resolve_name(self, url):
        cfg = self.session_config
        if cfg.aggregate_by_name and cfg.scenario_name:
            return cfg.scenario_name
        return url

    def page_metric(self, kind):
        return f"{PAGE_PREFIX}.{kind}"

    def named_page_metric(self, kind, url):
        return f"{PAGE_PREFIX}.{kind}.{self.resolve_name(url)}"
