"""Prompt templates for the review request sent to the model.

Each template is a pure function of (merge request info, aggregated diff,
review language). Templates differ only in what they ask the reviewer to focus
on. All of them ask for the same three sections (Summary, Detailed Comments,
Overall Assessment), the same item shape::

    - [SEVERITY] file_path:line_range - description

and the same three-way verdict, so the interpreter can read any of them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from reviewbot_core.models import MergeRequestInfo

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE = "default"
DEFAULT_LANGUAGE = "english"

_VERDICTS = "APPROVE, APPROVE_WITH_SUGGESTIONS, or REQUEST_CHANGES"
_NO_DESCRIPTION = "No description provided"


@dataclass(frozen=True)
class Language:
    name: str  # English display name, e.g. "Korean"
    native: str
    approve_example: str


LANGUAGES: dict[str, Language] = {
    "english": Language("English", "English", _VERDICTS),
    "korean": Language("Korean", "한국어", "승인, 수정 제안과 함께 승인, or 변경 요청"),
    "japanese": Language("Japanese", "日本語", "承認、提案付き承認、または変更要求"),
    "chinese": Language("Chinese", "中文", "批准、建议批准或请求更改"),
}


@dataclass(frozen=True)
class PromptTemplate:
    name: str
    description: str
    render: Callable[[MergeRequestInfo, str, str], str]


def _resolve_language(language: str) -> Language | None:
    """Return the Language for a non-baseline review language, None for English."""
    key = (language or DEFAULT_LANGUAGE).lower()
    if key == DEFAULT_LANGUAGE:
        return None
    lang = LANGUAGES.get(key)
    if lang is None:
        logger.warning('Unknown review language "%s", reviewing in English', language)
    return lang


def _description(mr_info: MergeRequestInfo) -> str:
    return mr_info.description or _NO_DESCRIPTION


def _mr_block(mr_info: MergeRequestInfo, branches: bool = True) -> str:
    lines = [
        "**Merge Request Information:**",
        f"- Title: {mr_info.title}",
        f"- Description: {_description(mr_info)}",
    ]
    if branches:
        lines.append(f"- Source Branch: {mr_info.source_branch}")
        lines.append(f"- Target Branch: {mr_info.target_branch}")
    return "\n".join(lines)


# ---------------------------------------------------------------------- #
# default                                                                  #
# ---------------------------------------------------------------------- #

_DEFAULT_FOCUS = """**Instructions:**
Please provide a thorough code review focusing on:
1. **Code Quality**: Is the code well-structured, readable, and maintainable?
2. **Best Practices**: Does it follow language-specific best practices and conventions?
3. **Potential Bugs**: Are there any potential bugs, edge cases, or error handling issues?
4. **Performance**: Are there any performance concerns or optimization opportunities?
5. **Security**: Are there any security vulnerabilities or concerns?
6. **Testing**: Does the code appear to be testable? Are there missing test cases?"""


def _render_default(mr_info: MergeRequestInfo, diff_content: str, language: str) -> str:
    lang = _resolve_language(language)
    if lang is None:
        return f"""You are an expert code reviewer. Please review the following merge request and provide constructive feedback.

{_mr_block(mr_info)}

**Code Changes:**
{diff_content}

{_DEFAULT_FOCUS}

**Output Format:**
Please structure your review as follows:

## Summary
[A brief 2-3 sentence summary of the changes and overall quality]

## Detailed Comments
[List specific issues or suggestions, one per line, in this format:]
- [SEVERITY] file_path:line_range - Description of issue/suggestion
  (where SEVERITY is one of: INFO, SUGGESTION, WARNING, CRITICAL)

## Overall Assessment
[Your final verdict: {_VERDICTS}]

Be constructive, specific, and prioritize the most important issues."""

    return f"""You are an expert code reviewer. Please review the following merge request and provide constructive feedback in BOTH {lang.name} and English.

{_mr_block(mr_info)}

**Code Changes:**
{diff_content}

{_DEFAULT_FOCUS}

**IMPORTANT: Provide ALL feedback in BOTH {lang.name} and English.**

**Output Format:**
Please structure your review as follows:

## Summary
**{lang.name} ({lang.native}):**
[A brief 2-3 sentence summary in {lang.name}]

**English:**
[A brief 2-3 sentence summary in English]

## Detailed Comments
[List specific issues or suggestions, one per line, in this format:]
- [SEVERITY] file_path:line_range - [{lang.name} description] / [English description]
  (where SEVERITY is one of: INFO, SUGGESTION, WARNING, CRITICAL)

## Overall Assessment
**{lang.name} ({lang.native}):**
[Your final verdict in {lang.name}: {lang.approve_example}]

**English:**
[Your final verdict in English: {_VERDICTS}]

Be constructive, specific, and prioritize the most important issues. Remember to provide BOTH {lang.name} and English for every section."""


# ---------------------------------------------------------------------- #
# concise                                                                  #
# ---------------------------------------------------------------------- #


def _render_concise(mr_info: MergeRequestInfo, diff_content: str, language: str) -> str:
    prompt = f"""You are an expert code reviewer. Please provide a CONCISE review of the following merge request, focusing only on critical issues and major improvements.

{_mr_block(mr_info, branches=False)}

**Code Changes:**
{diff_content}

**Instructions:**
Focus ONLY on:
1. Critical bugs or security vulnerabilities
2. Major performance issues
3. Significant architectural concerns

Keep your review brief and to the point. Ignore minor style issues.

**Output Format:**

## Summary
[1-2 sentences max]

## Detailed Comments
[Only list CRITICAL or WARNING items, one per line:]
- [SEVERITY] file_path:line_range - Brief description

## Overall Assessment
[{_VERDICTS}]"""

    lang = _resolve_language(language)
    if lang is None:
        return prompt
    return prompt + f"\n\nProvide your review in both {lang.name} and English."


# ---------------------------------------------------------------------- #
# security                                                                 #
# ---------------------------------------------------------------------- #


def _render_security(mr_info: MergeRequestInfo, diff_content: str, language: str) -> str:
    prompt = f"""You are a security-focused code reviewer. Please review the following merge request with emphasis on security vulnerabilities and best practices.

{_mr_block(mr_info)}

**Code Changes:**
{diff_content}

**Security Review Focus:**
1. **Authentication & Authorization**: Are authentication and authorization properly implemented?
2. **Input Validation**: Is user input properly validated and sanitized?
3. **Injection Vulnerabilities**: SQL injection, command injection, XSS, etc.
4. **Sensitive Data**: Are secrets, API keys, or sensitive data properly handled?
5. **Cryptography**: Are cryptographic operations done correctly?
6. **Dependencies**: Are there known vulnerabilities in dependencies?
7. **Access Control**: Are permissions and access controls properly enforced?
8. **Data Exposure**: Is sensitive data unnecessarily exposed in logs, errors, or responses?

**Output Format:**

## Summary
[Brief overview of security posture]

## Detailed Comments
[List security issues and best practice recommendations, one per line:]
- [SEVERITY] file_path:line_range - Security issue description
  (SEVERITY: CRITICAL for exploitable vulnerabilities, WARNING for potential issues, SUGGESTION for improvements)

## Overall Assessment
[{_VERDICTS} with security justification]"""

    lang = _resolve_language(language)
    if lang is None:
        return prompt
    return prompt + f"\n\nProvide your review in both {lang.name} and English, with security terms in English for clarity."


# ---------------------------------------------------------------------- #
# performance                                                              #
# ---------------------------------------------------------------------- #


def _render_performance(mr_info: MergeRequestInfo, diff_content: str, language: str) -> str:
    prompt = f"""You are a performance-focused code reviewer. Please review the following merge request with emphasis on performance and scalability.

{_mr_block(mr_info)}

**Code Changes:**
{diff_content}

**Performance Review Focus:**
1. **Algorithm Complexity**: Are algorithms efficient? Any O(n²) that could be O(n)?
2. **Database Queries**: N+1 queries, missing indexes, inefficient queries?
3. **Memory Usage**: Memory leaks, unnecessary allocations, caching opportunities?
4. **Network Calls**: Unnecessary API calls, missing parallelization, no caching?
5. **Scalability**: Will this scale with increased load?
6. **Resource Management**: Proper cleanup of resources (connections, files, etc.)?
7. **Async Operations**: Are async operations used where appropriate?

**Output Format:**

## Summary
[Brief overview of performance impact]

## Detailed Comments
[List performance issues and optimization opportunities, one per line:]
- [SEVERITY] file_path:line_range - Performance issue and potential impact
  (Include estimated complexity or impact when possible)
  (Use SUGGESTION for optimization opportunities)

## Overall Assessment
[{_VERDICTS} with performance justification]"""

    lang = _resolve_language(language)
    if lang is None:
        return prompt
    return prompt + f"\n\nProvide your review in both {lang.name} and English, with performance terms in English for precision."


# ---------------------------------------------------------------------- #
# Registry                                                                 #
# ---------------------------------------------------------------------- #

_TEMPLATES: dict[str, PromptTemplate] = {
    t.name: t
    for t in (
        PromptTemplate(
            name="default",
            description=(
                "Comprehensive code review covering quality, best practices, bugs, "
                "performance, security, and testing"
            ),
            render=_render_default,
        ),
        PromptTemplate(
            name="concise",
            description="Quick, focused review highlighting only critical issues and major suggestions",
            render=_render_concise,
        ),
        PromptTemplate(
            name="security",
            description=(
                "Security-focused review emphasizing vulnerabilities, authentication, "
                "authorization, and data protection"
            ),
            render=_render_security,
        ),
        PromptTemplate(
            name="performance",
            description="Performance-focused review emphasizing optimization, scalability, and resource usage",
            render=_render_performance,
        ),
    )
}


def get_prompt_template(name: str | None, log: logging.Logger | None = None) -> PromptTemplate:
    """Look up a template by name, case-insensitively.

    Unknown names never fail the review: they are logged and resolved to the
    default template.
    """
    template = _TEMPLATES.get((name or DEFAULT_TEMPLATE).lower())
    if template is None:
        (log or logger).warning('Unknown template "%s", falling back to default', name)
        return _TEMPLATES[DEFAULT_TEMPLATE]
    return template


def list_templates() -> list[dict]:
    return [{"name": t.name, "description": t.description} for t in _TEMPLATES.values()]
