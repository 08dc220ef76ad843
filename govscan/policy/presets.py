"""
Built-in Policy Presets — Ready-made rule packs installable without an LLM.

Each preset is stored as an ordinary policy whose source_url is
"builtin://<slug>", so it scans and lists like any ingested document.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass

from govscan.errors import UnknownPresetError
from govscan.models.rule_models import CheckType, Policy, PolicyCategory, Severity
from govscan.store.base import Store

logger = logging.getLogger("govscan.policy.presets")

BUILTIN_SCHEME = "builtin://"


@dataclass(frozen=True)
class PresetRule:
    rule_id: str
    title: str
    description: str
    severity: str
    category: str
    check_type: str
    pattern: str
    recommendations: tuple[str, ...] = ()
    clause_reference: str = ""


@dataclass(frozen=True)
class Preset:
    """Static registry entry for one rule pack."""

    name: str
    slug: str
    description: str
    category: PolicyCategory
    severity: Severity
    regulation_type: str
    rules: tuple[PresetRule, ...]


_PRESETS: tuple[Preset, ...] = (
    Preset(
        name="OWASP Top 10 Baseline",
        slug="owasp-top-10",
        description="Common web application weaknesses detectable from source text",
        category=PolicyCategory.SECURITY,
        severity=Severity.HIGH,
        regulation_type="SECURITY_STANDARD",
        rules=(
            PresetRule(
                rule_id="OWASP-A02-1",
                title="Weak hash algorithm",
                description="MD5 and SHA-1 are unsuitable for passwords or integrity checks",
                severity=Severity.HIGH.value,
                category="CRYPTOGRAPHY",
                check_type=CheckType.CODE_PATTERN.value,
                pattern=r"\b(md5|sha1)\s*\(",
                recommendations=("Use SHA-256 or a password hash such as bcrypt or argon2",),
                clause_reference="A02:2021 Cryptographic Failures",
            ),
            PresetRule(
                rule_id="OWASP-A03-1",
                title="Shell command built from input",
                description="Commands run through a shell are open to injection",
                severity=Severity.CRITICAL.value,
                category="INJECTION",
                check_type=CheckType.CODE_PATTERN.value,
                pattern=r"(os\.system\s*\(|subprocess\.\w+\([^)]*shell\s*=\s*True)",
                recommendations=("Pass an argument list and keep shell=False",),
                clause_reference="A03:2021 Injection",
            ),
            PresetRule(
                rule_id="OWASP-A05-1",
                title="Debug mode enabled",
                description="Debug mode exposes stack traces and interactive consoles",
                severity=Severity.MEDIUM.value,
                category="CONFIGURATION",
                check_type=CheckType.CONFIG_CHECK.value,
                pattern=r"^\s*DEBUG\s*[:=]\s*(True|true|1)\b",
                recommendations=("Disable debug mode outside local development",),
                clause_reference="A05:2021 Security Misconfiguration",
            ),
            PresetRule(
                rule_id="OWASP-A08-1",
                title="Unsafe deserialization",
                description="pickle and yaml.load execute attacker-controlled payloads",
                severity=Severity.HIGH.value,
                category="INTEGRITY",
                check_type=CheckType.CODE_PATTERN.value,
                pattern=r"\b(pickle\.loads?|yaml\.load)\s*\(",
                recommendations=("Use json or yaml.safe_load for untrusted data",),
                clause_reference="A08:2021 Software and Data Integrity Failures",
            ),
        ),
    ),
    Preset(
        name="Secrets Hygiene",
        slug="secrets-hygiene",
        description="Credentials committed to the repository",
        category=PolicyCategory.SECURITY,
        severity=Severity.CRITICAL,
        regulation_type="SECURITY_STANDARD",
        rules=(
            PresetRule(
                rule_id="SEC-ENV-1",
                title="Environment file committed",
                description="A .env file usually holds live credentials",
                severity=Severity.HIGH.value,
                category="SECRETS",
                check_type=CheckType.FILE_PATTERN.value,
                pattern=".env",
                recommendations=("Remove the file from version control and rotate its secrets",),
            ),
            PresetRule(
                rule_id="SEC-KEY-1",
                title="Private key committed",
                description="PEM private keys must never be stored in source control",
                severity=Severity.CRITICAL.value,
                category="SECRETS",
                check_type=CheckType.CODE_PATTERN.value,
                pattern=r"-----BEGIN (RSA |EC |OPENSSH )?PRIVATE KEY-----",
                recommendations=("Move the key to a secrets manager and revoke the committed one",),
            ),
            PresetRule(
                rule_id="SEC-KEY-2",
                title="Hard-coded API key",
                description="API keys assigned as string literals",
                severity=Severity.CRITICAL.value,
                category="SECRETS",
                check_type=CheckType.CODE_PATTERN.value,
                pattern=r"(api[_-]?key|secret[_-]?key|access[_-]?token)\s*[:=]\s*['\"][^'\"]{6,}['\"]",
                recommendations=("Read credentials from the environment or a secrets manager",),
            ),
            PresetRule(
                rule_id="SEC-IGN-1",
                title="No .gitignore",
                description="Without a .gitignore, local secrets are easily committed",
                severity=Severity.LOW.value,
                category="SECRETS",
                check_type=CheckType.FILE_PATTERN.value,
                pattern="missing:.gitignore",
                recommendations=("Add a .gitignore covering .env and key files",),
            ),
        ),
    ),
    Preset(
        name="EU AI Act Readiness",
        slug="eu-ai-act",
        description="Documentation and oversight artefacts expected of AI systems",
        category=PolicyCategory.COMPLIANCE,
        severity=Severity.MEDIUM,
        regulation_type="AI_REGULATION",
        rules=(
            PresetRule(
                rule_id="AIACT-11-1",
                title="Missing model card",
                description="Technical documentation of the model is not present",
                severity=Severity.MEDIUM.value,
                category="DOCUMENTATION",
                check_type=CheckType.FILE_PATTERN.value,
                pattern="missing:MODEL_CARD.md",
                recommendations=("Add a MODEL_CARD.md describing purpose, data and limitations",),
                clause_reference="Article 11",
            ),
            PresetRule(
                rule_id="AIACT-12-1",
                title="Prediction logging disabled",
                description="High-risk systems must keep automatic event logs",
                severity=Severity.MEDIUM.value,
                category="RECORD_KEEPING",
                check_type=CheckType.CONFIG_CHECK.value,
                pattern=r"^\s*(log_predictions|enable_logging)\s*[:=]\s*(false|False|0)\b",
                recommendations=("Enable logging of model inputs and outputs",),
                clause_reference="Article 12",
            ),
            PresetRule(
                rule_id="AIACT-14-1",
                title="Human oversight",
                description="Human oversight measures need manual review",
                severity=Severity.INFO.value,
                category="OVERSIGHT",
                check_type=CheckType.MANUAL.value,
                pattern="",
                recommendations=("Document who can override or halt the system",),
                clause_reference="Article 14",
            ),
        ),
    ),
)

_REGISTRY: dict[str, Preset] = {p.slug: p for p in _PRESETS}


def list_presets() -> list[Preset]:
    return sorted(_REGISTRY.values(), key=lambda p: p.slug)


def get_preset(slug: str) -> Preset:
    preset = _REGISTRY.get(slug)
    if preset is None:
        raise UnknownPresetError(f"Unknown preset: {slug!r}")
    return preset


def preset_rules_json(preset: Preset) -> str:
    return json.dumps({"rules": [asdict(rule) for rule in preset.rules]})


def install_preset(store: Store, slug: str) -> Policy:
    """Store a preset as a policy. Raises UnknownPresetError."""
    preset = get_preset(slug)
    policy = store.create_policy(Policy(
        name=preset.name,
        description=preset.description,
        category=preset.category,
        severity=preset.severity,
        source_url=BUILTIN_SCHEME + preset.slug,
        rules_json=preset_rules_json(preset),
        regulation_type=preset.regulation_type,
        rule_count=len(preset.rules),
    ))
    logger.info(f"Installed preset '{slug}' as policy {policy.id} ({policy.rule_count} rules)")
    return policy
