"""Target authorization for MCP tool calls."""
import ipaddress
import logging
import re
import yaml
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List


class AuthManager:
    """Decides which hosts the MCP tools may fuzz."""

    def __init__(self, config_path: str = "mcp_auth_config.yaml"):
        self.config_path = Path(config_path)
        self.logger = logging.getLogger(__name__)
        self.config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load authorization configuration."""
        if not self.config_path.exists():
            return self._default_config()

        with open(self.config_path, 'r', encoding='utf-8') as f:
            return yaml.safe_load(f) or self._default_config()

    def _default_config(self) -> Dict[str, Any]:
        """Return default authorization configuration."""
        return {
            "authorization": {
                "mode": "whitelist",
                "whitelist": {
                    "domains": ["localhost", "*.local"],
                    "ip_ranges": ["127.0.0.0/8", "192.168.0.0/16", "10.0.0.0/8"]
                },
                "blacklist": ["*.gov", "*.mil", "*.edu"],
                "audit": {
                    "enabled": True,
                    "log_file": "logs/mcp_audit.log"
                }
            }
        }

    def is_authorized(self, target: str) -> bool:
        """Check if target is authorized for fuzzing."""
        auth_config = self.config.get("authorization", {})

        # Check blacklist first
        if self._is_blacklisted(target, auth_config.get("blacklist", [])):
            self.logger.warning(f"Target {target} is blacklisted")
            return False

        mode = auth_config.get("mode", "whitelist")
        if mode == "whitelist":
            if self._is_whitelisted(target, auth_config.get("whitelist", {})):
                return True
            self.logger.warning(f"Target {target} not in whitelist")
            return False

        return True

    def add_whitelist(self, pattern: str) -> None:
        """Whitelist a host pattern or CIDR range and persist the config."""
        whitelist = self.config.setdefault("authorization", {}).setdefault("whitelist", {})
        key = "ip_ranges" if self._is_network(pattern) else "domains"
        entries = whitelist.setdefault(key, [])
        if pattern not in entries:
            entries.append(pattern)
        self._save_config()

    def _save_config(self) -> None:
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_path, 'w', encoding='utf-8') as f:
            yaml.safe_dump(self.config, f, sort_keys=False)

    def _is_blacklisted(self, target: str, blacklist: List[str]) -> bool:
        """Check if target matches blacklist patterns."""
        return any(self._matches_pattern(target, pattern) for pattern in blacklist)

    def _is_whitelisted(self, target: str, whitelist: Dict[str, List[str]]) -> bool:
        """Check if target matches whitelist patterns or ranges."""
        if any(self._matches_pattern(target, p) for p in whitelist.get("domains", [])):
            return True

        try:
            address = ipaddress.ip_address(target)
        except ValueError:
            return False
        for cidr in whitelist.get("ip_ranges", []):
            try:
                if address in ipaddress.ip_network(cidr, strict=False):
                    return True
            except ValueError:
                self.logger.warning(f"Ignoring invalid ip range {cidr!r}")
        return False

    def _matches_pattern(self, target: str, pattern: str) -> bool:
        """Check if target matches a pattern (supports wildcards)."""
        pattern_regex = re.escape(pattern).replace(r"\*", ".*")
        return bool(re.match(f"^{pattern_regex}$", target, re.IGNORECASE))

    @staticmethod
    def _is_network(pattern: str) -> bool:
        try:
            ipaddress.ip_network(pattern, strict=False)
            return True
        except ValueError:
            return False

    def log_audit(self, tool_name: str, target: str, result: str):
        """Log audit entry."""
        audit_config = self.config.get("authorization", {}).get("audit", {})
        if not audit_config.get("enabled", True):
            return

        log_file = Path(audit_config.get("log_file", "logs/mcp_audit.log"))
        log_file.parent.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().isoformat()
        entry = f"{timestamp} | {tool_name} | {target} | {result}\n"

        with open(log_file, 'a', encoding='utf-8') as f:
            f.write(entry)
