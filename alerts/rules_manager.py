"""Alert rules loading from YAML."""
import logging
import yaml
from pathlib import Path
from models.alerts import AlertAction, AlertRule
from models.enums import Condition
from monitor.errors import InvalidRule

logger = logging.getLogger("perfmon.alerts.rules")

DEFAULT_RULES_PATH = Path(__file__).parent.parent / "config" / "alerts_rules.yaml"


class RulesManager:
    def __init__(self, rules_path=DEFAULT_RULES_PATH):
        self.rules_path = Path(rules_path)
        self.rules = []
        self.load()

    def load(self):
        if not self.rules_path.exists():
            logger.warning(f"Alert rules file not found: {self.rules_path}")
            return
        with open(self.rules_path) as f:
            data = yaml.safe_load(f) or {}
        self.rules = self._parse_rules(data.get("rules", []))
        logger.info(f"Loaded {len(self.rules)} alert rules from {self.rules_path}")

    def _parse_rules(self, raw_rules):
        rules = []
        valid_conditions = {c.value for c in Condition}
        for r in raw_rules:
            if r.get("condition") not in valid_conditions:
                logger.warning(f"Invalid condition in rule {r.get('id')}: {r.get('condition')}")
                continue
            if not r.get("id") or not r.get("metric"):
                logger.warning(f"Rule missing id or metric: {r}")
                continue
            try:
                threshold = float(r["threshold"])
            except (KeyError, TypeError, ValueError):
                logger.warning(f"Invalid threshold in rule {r.get('id')}: {r.get('threshold')}")
                continue
            rules.append(AlertRule(
                id=r["id"],
                name=r.get("name", r["id"]),
                metric=r["metric"],
                condition=Condition(r["condition"]),
                threshold=threshold,
                window=r.get("window", 60),
                enabled=r.get("enabled", True),
                actions=[AlertAction(type=a.get("type", "log"), config=a.get("config") or {})
                         for a in r.get("actions", [])],
                description=r.get("description", ""),
            ))
        return rules

    def apply(self, engine):
        """Register every loaded rule with an engine. Returns the number added."""
        added = 0
        for rule in self.rules:
            try:
                engine.add_rule(rule)
                added += 1
            except InvalidRule as e:
                logger.warning(f"Skipping rule {rule.id}: {e}")
        return added

    def get_enabled_rules(self):
        return [r for r in self.rules if r.enabled]

    def get_rule(self, rule_id):
        for r in self.rules:
            if r.id == rule_id:
                return r
        return None

    def get_all_rules(self):
        return self.rules
