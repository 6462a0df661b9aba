"""
Unit tests for the domain profile registry.
"""

import pytest

from jobdesc.extractor.profiles import (
    DEFAULT_REGISTRY,
    FALLBACK_PROFILE,
    KNOWN_PROFILES,
    DomainProfile,
    ProfileRegistry,
    lookup,
)


class TestDomainProfile:
    """DomainProfile construction rules."""

    def test_requires_selectors(self):
        with pytest.raises(ValueError, match="at least one selector"):
            DomainProfile(match_suffix="example.com", selectors=())

    def test_fallback_flag(self):
        assert FALLBACK_PROFILE.is_fallback
        assert not any(profile.is_fallback for profile in KNOWN_PROFILES)

    def test_profiles_are_immutable(self):
        profile = KNOWN_PROFILES[0]
        with pytest.raises(AttributeError):
            profile.match_suffix = "other.com"


class TestLookup:
    """URL to profile resolution."""

    @pytest.mark.parametrize(
        "url,expected",
        [
            ("https://www.linkedin.com/jobs/view/3791234567", "linkedin.com"),
            ("https://uk.indeed.com/viewjob?jk=abc123", "indeed.com"),
            ("https://jobs.lever.co/acme/1f2e3d4c", "lever.co"),
            ("https://boards.greenhouse.io/acme/jobs/4012345", "greenhouse.io"),
            ("https://acme.wd5.myworkdayjobs.com/en-US/careers/job/123", "myworkdayjobs.com"),
            ("https://www.adzuna.com/details/4412345678", "adzuna.com"),
            ("https://www.glassdoor.com/job-listing/data-engineer", "glassdoor.com"),
            ("https://www.ziprecruiter.com/c/Acme/Job/Data-Engineer", "ziprecruiter.com"),
        ],
    )
    def test_known_sites(self, url, expected):
        assert lookup(url).match_suffix == expected

    def test_host_match_is_case_insensitive(self):
        assert lookup("https://WWW.LinkedIn.COM/jobs/view/1").match_suffix == "linkedin.com"

    def test_path_does_not_match(self):
        """Only the host is considered, not the path or query."""
        profile = lookup("https://jobs.example.com/redirect?to=linkedin.com")
        assert profile is FALLBACK_PROFILE

    def test_unknown_site_uses_fallback(self):
        assert lookup("https://careers.acme-analytics.io/jobs/42") is FALLBACK_PROFILE

    @pytest.mark.parametrize("url", ["not a url", "", "http://[::1"])
    def test_unusable_url_uses_fallback(self, url):
        assert lookup(url) is FALLBACK_PROFILE

    def test_first_match_wins(self):
        first = DomainProfile(match_suffix="example.com", selectors=(".first",))
        second = DomainProfile(match_suffix="jobs.example.com", selectors=(".second",))
        registry = ProfileRegistry(profiles=(first, second))

        assert registry.lookup("https://jobs.example.com/1") is first


class TestRegistry:
    """Registry composition."""

    def test_default_registry_contents(self):
        assert DEFAULT_REGISTRY.profiles == KNOWN_PROFILES
        assert DEFAULT_REGISTRY.fallback is FALLBACK_PROFILE

    def test_with_profiles_takes_priority(self):
        custom = DomainProfile(match_suffix="linkedin.com", selectors=(".custom-description",))
        registry = DEFAULT_REGISTRY.with_profiles([custom])

        assert registry.lookup("https://www.linkedin.com/jobs/view/1") is custom
        # The original table is untouched
        assert DEFAULT_REGISTRY.lookup("https://www.linkedin.com/jobs/view/1") is not custom

    def test_fallback_selector_chain(self):
        selectors = FALLBACK_PROFILE.selectors
        assert "description" in selectors[0]
        assert "article" in selectors
        assert selectors.index("article") < selectors.index(".content")
        assert set(FALLBACK_PROFILE.remove_selectors) >= {".nav", ".header", ".footer"}
        assert FALLBACK_PROFILE.wait_selector is None
