"""
Security test suite — ScanDPE Simulator
=======================================
Covers: credential hygiene, HTTPS-only endpoints, dangerous-primitive absence,
and token material staying out of logs and the audit trail.

These tests are intended to act as a continuous security gate: if any of the
checks fail the CI build should be blocked.
"""
from __future__ import annotations

import os
import re

ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

# Production source files to audit (test files are intentionally excluded)
PRODUCTION_FILES = [
    "app/main.py",
    "app/session.py",
    "app/visualization.py",
    "app/tabs/configure.py",
    "app/tabs/projects.py",
    "app/tabs/results.py",
    "app/tabs/settings.py",
    "config/constants.py",
    "config/logging_config.py",
    "core/bridge.py",
    "core/model.py",
    "services/audit.py",
    "services/auth.py",
    "services/backend.py",
    "services/demo.py",
]


def _read(relpath: str) -> str:
    fpath = os.path.join(ROOT_DIR, relpath)
    if not os.path.exists(fpath):
        return ""
    with open(fpath, encoding="utf-8") as fh:
        return fh.read()


def _non_comment_lines(content: str) -> str:
    """Strip full-line comments to avoid false positives."""
    return "\n".join(
        line for line in content.splitlines() if not line.strip().startswith("#")
    )


# ─────────────────────────────────────────────────────────────────────────────
# 1. No hardcoded secrets in production source
# ─────────────────────────────────────────────────────────────────────────────

class TestNoHardcodedSecrets:
    """Verify that no bearer tokens appear as string literals in source code."""

    JWT_RE = re.compile(r"eyJ[A-Za-z0-9_\-]{10,}\.[A-Za-z0-9_\-]{10,}")
    HEX40_IN_LITERAL_RE = re.compile(r"""['"]([0-9a-f]{40})['"]""")

    def test_production_files_exist(self):
        missing = [f for f in PRODUCTION_FILES if not os.path.exists(os.path.join(ROOT_DIR, f))]
        assert not missing, f"Audited files missing: {missing}"

    def test_no_jwt_literal(self):
        for fname in PRODUCTION_FILES:
            matches = self.JWT_RE.findall(_read(fname))
            assert not matches, f"Possible JWT literal in {fname}: {matches}"

    def test_no_40char_hex_key_literal(self):
        for fname in PRODUCTION_FILES:
            clean = _non_comment_lines(_read(fname))
            matches = self.HEX40_IN_LITERAL_RE.findall(clean)
            assert not matches, f"Possible 40-char hex secret literal in {fname}: {matches}"

    def test_no_password_literals(self):
        pw_re = re.compile(r"""(?:password|passwd)\s*=\s*['"][^'"]{4,}['"]""", re.IGNORECASE)
        for fname in PRODUCTION_FILES:
            matches = pw_re.findall(_non_comment_lines(_read(fname)))
            assert not matches, f"Possible hardcoded password in {fname}: {matches}"


# ─────────────────────────────────────────────────────────────────────────────
# 2. No dangerous Python execution primitives
# ─────────────────────────────────────────────────────────────────────────────

class TestNoDangerousPrimitives:
    """Ensure no eval, exec, or pickle.loads of untrusted data."""

    def test_no_eval(self):
        eval_re = re.compile(r"\beval\s*\(")
        for fname in PRODUCTION_FILES:
            assert not eval_re.search(_non_comment_lines(_read(fname))), f"eval() found in {fname}"

    def test_no_exec(self):
        exec_re = re.compile(r"\bexec\s*\(")
        for fname in PRODUCTION_FILES:
            assert not exec_re.search(_non_comment_lines(_read(fname))), f"exec() found in {fname}"

    def test_no_pickle_loads(self):
        for fname in PRODUCTION_FILES:
            assert "pickle.loads" not in _read(fname), f"pickle.loads() in {fname}"


# ─────────────────────────────────────────────────────────────────────────────
# 3. All external HTTP calls use HTTPS
# ─────────────────────────────────────────────────────────────────────────────

class TestAllHttpsEndpoints:
    """External API endpoints must use HTTPS."""

    LOCAL_PATTERN = re.compile(r"http://(localhost|127\.0\.0\.1|0\.0\.0\.0)")

    def test_no_plain_http_urls_in_production(self):
        http_re = re.compile(r'http://[^\s\'"]+')
        for fname in PRODUCTION_FILES:
            for line in _read(fname).splitlines():
                if line.strip().startswith("#"):
                    continue
                for m in http_re.finditer(line):
                    assert self.LOCAL_PATTERN.match(m.group(0)), (
                        f"Non-HTTPS external URL in {fname}: {m.group(0)!r}"
                    )

    def test_ssl_verification_not_disabled(self):
        for fname in PRODUCTION_FILES:
            assert "verify=False" not in _read(fname), (
                f"SSL verification disabled (verify=False) in {fname}"
            )


# ─────────────────────────────────────────────────────────────────────────────
# 4. Token material stays out of logs and the audit trail
# ─────────────────────────────────────────────────────────────────────────────

class TestTokenHygiene:
    def test_tokens_are_never_logged(self):
        log_re = re.compile(r"logger\.\w+\(.*\btoken\b", re.IGNORECASE)
        for fname in PRODUCTION_FILES:
            for line in _non_comment_lines(_read(fname)).splitlines():
                assert not log_re.search(line), f"Token passed to logger in {fname}: {line.strip()}"

    def test_audit_module_documents_redaction(self):
        content = _read("services/audit.py")
        assert "redacted" in content and "no credentials" in content

    def test_audit_details_never_carry_group_ids(self):
        # Generated group ids are long enough to trip the token guard
        for line in _read("core/bridge.py").splitlines():
            if "self._record(" in line:
                assert "group_id" not in line, f"Audit detail includes a group id: {line.strip()}"
