from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

import yaml

from models.errors import ConfigError
from orchestrator.stage_types import QuestionType


@dataclass(frozen=True)
class SiteProfile:
    """Everything site-specific about a run: where to crawl and what to try first."""

    site_name: str
    base_url: str
    domain: str
    seed_paths: tuple[str, ...] = ()
    fallback_paths: tuple[str, ...] = ()
    follow_link_keywords: tuple[str, ...] = ()
    resource_hosts: tuple[str, ...] = ()
    type_keywords: dict[str, tuple[str, ...]] = field(default_factory=dict)
    static_knowledge: dict[str, str] = field(default_factory=dict)
    report_task: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SiteProfile":
        base_url = str(data.get("base_url") or "").strip()
        if not base_url.startswith(("http://", "https://")):
            raise ConfigError(f"Site profile base_url must be an http(s) URL, got {base_url!r}")

        domain = str(data.get("domain") or urlparse(base_url).hostname or "").lower()
        if not domain:
            raise ConfigError("Site profile has no domain")

        valid_types = {t.value for t in QuestionType}
        type_keywords: dict[str, tuple[str, ...]] = {}
        for type_name, words in (data.get("type_keywords") or {}).items():
            if type_name not in valid_types:
                raise ConfigError(f"Unknown question type in type_keywords: {type_name}")
            type_keywords[type_name] = tuple(str(w) for w in words or ())

        static_knowledge = {}
        for type_name, value in (data.get("static_knowledge") or {}).items():
            if type_name not in valid_types:
                raise ConfigError(f"Unknown question type in static_knowledge: {type_name}")
            static_knowledge[type_name] = str(value)

        return cls(
            site_name=str(data.get("site_name") or domain),
            base_url=base_url,
            domain=domain,
            seed_paths=tuple(str(p) for p in data.get("seed_paths") or ()),
            fallback_paths=tuple(str(p) for p in data.get("fallback_paths") or ()),
            follow_link_keywords=tuple(str(k).lower() for k in data.get("follow_link_keywords") or ()),
            resource_hosts=tuple(str(h).lower() for h in data.get("resource_hosts") or ()),
            type_keywords=type_keywords,
            static_knowledge=static_knowledge,
            report_task=str(data.get("report_task") or ""),
        )

    @classmethod
    def from_yaml(cls, path: str | Path) -> "SiteProfile":
        profile_path = Path(path)
        if not profile_path.exists():
            raise ConfigError(f"Site profile not found at {profile_path}")
        try:
            data = yaml.safe_load(profile_path.read_text(encoding="utf-8"))
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid site profile {profile_path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Invalid site profile {profile_path}: expected a mapping")
        return cls.from_dict(data)

    def seed_urls(self, limit: int) -> list[str]:
        base = self.base_url.rstrip("/")
        urls: list[str] = []
        for path in self.seed_paths:
            url = path if path.startswith(("http://", "https://")) else f"{base}/{path.lstrip('/')}"
            if url not in urls:
                urls.append(url)
        return urls[:limit]
