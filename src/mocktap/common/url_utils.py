"""
MockTap URL Utilities

URL resolution, normalization, and wildcard matching used when comparing an
expected URI with an intercepted request.
"""

import re
from typing import Pattern, Union
from urllib.parse import parse_qsl, unquote, urlsplit, urlunsplit

_PATTERN_TOKENS = re.compile(r'(\*\*|\*|\{[^}]+\})')


class URLMatcher:
    """Handles URL matching logic with various strategies."""

    @staticmethod
    def resolve(base_address: str, uri: str) -> str:
        """
        Resolve a (possibly relative) URI against a client base address.

        Relative URIs are appended to the base address path, the way
        httpx.Client merges them with its base_url.

        Args:
            base_address: Client base address, e.g. 'https://unittest'
            uri: Absolute URL or path relative to the base address

        Returns:
            Absolute URL
        """
        if urlsplit(uri).scheme:
            return uri
        return base_address.rstrip('/') + '/' + uri.lstrip('/')

    @staticmethod
    def normalize_url(url: str, strip_query: bool = False) -> str:
        """
        Normalize URL for comparison.

        Scheme and host are lower-cased, percent-encoding is decoded (so '%20'
        and an encoded space compare equal), '+' in the query is a space,
        query parameters are sorted and the fragment is dropped.

        Args:
            url: URL to normalize
            strip_query: If True, remove query parameters

        Returns:
            Normalized URL string
        """
        parsed = urlsplit(url)
        path = unquote(parsed.path) or '/'
        normalized = f"{parsed.scheme.lower()}://{parsed.netloc.lower()}{path}"

        if strip_query or not parsed.query:
            return normalized

        # Sort query parameters for consistent comparison
        query = sorted(parse_qsl(parsed.query, keep_blank_values=True))
        return normalized + '?' + '&'.join(f"{k}={v}" for k, v in query)

    @staticmethod
    def urls_match(expected: str, actual: str) -> bool:
        """Compare two absolute URLs after normalization, ignoring case."""
        return URLMatcher.normalize_url(expected).casefold() == URLMatcher.normalize_url(actual).casefold()

    @staticmethod
    def is_pattern(uri: str) -> bool:
        """Check whether a URI path uses '*', '**' or '{param}' wildcards (the query is always literal)."""
        return bool(_PATTERN_TOKENS.search(urlsplit(uri).path))

    @staticmethod
    def compile_pattern(pattern: str) -> Pattern:
        """
        Convert a wildcard URL pattern (without query) to a regular expression.

        '{param}' and '*' match a single path segment; '**' matches anything.
        """
        parts = []
        for token in _PATTERN_TOKENS.split(unquote(pattern)):
            if token == '**':
                parts.append('.*')
            elif token == '*' or (token.startswith('{') and token.endswith('}')):
                parts.append('[^/?]+')
            else:
                parts.append(re.escape(token))
        return re.compile('^' + ''.join(parts) + '$', re.IGNORECASE)

    @staticmethod
    def queries_match(expected: str, actual: str) -> bool:
        """
        Compare two query strings after decoding and sorting, ignoring case.

        An expected value of '*' accepts any value for that parameter.
        """
        expected_items = sorted((k.casefold(), v.casefold()) for k, v in parse_qsl(expected, keep_blank_values=True))
        actual_items = sorted((k.casefold(), v.casefold()) for k, v in parse_qsl(actual, keep_blank_values=True))
        if len(expected_items) != len(actual_items):
            return False

        wildcard_keys = [k for k, v in expected_items if v == '*']
        literal = [item for item in expected_items if item[1] != '*']
        remaining = list(actual_items)
        for item in literal:
            if item not in remaining:
                return False
            remaining.remove(item)
        return sorted(wildcard_keys) == sorted(k for k, _ in remaining)

    @staticmethod
    def matches_pattern(pattern: Union[str, Pattern], url: str) -> bool:
        """
        Match a request URL against a pattern.

        A compiled regular expression is searched against the normalized URL.
        A wildcard string is matched against the normalized URL without its
        query, and its own query (if any) must then equal the request query.
        """
        if isinstance(pattern, re.Pattern):
            return bool(pattern.search(URLMatcher.normalize_url(url)))

        expected = urlsplit(pattern)
        path_pattern = urlunsplit((expected.scheme, expected.netloc, expected.path, '', ''))
        if not URLMatcher.compile_pattern(path_pattern).match(URLMatcher.normalize_url(url, strip_query=True)):
            return False
        return URLMatcher.queries_match(expected.query, urlsplit(url).query)
