"""Contains unit tests for the utils.github module."""

import pytest

from wg_tracker.utils.github import split_repository_in_configuration


@pytest.mark.asyncio
async def test_split_repository_valid() -> None:
    """Test splitting a valid owner/repo string."""
    assert await split_repository_in_configuration("w3c/csswg-drafts") == ("w3c", "csswg-drafts")


@pytest.mark.asyncio
async def test_split_repository_missing() -> None:
    """Test that ValueError is raised if repo is None."""
    with pytest.raises(ValueError, match="A repository must be provided in 'owner/repo' format."):
        await split_repository_in_configuration(None)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "malformed_repo",
    [
        pytest.param("w3c-csswg-drafts", id="no slash"),
        pytest.param("", id="empty string"),
        pytest.param("/", id="only a slash"),
        pytest.param("w3c/csswg-drafts/extra", id="too many parts"),
    ],
)
async def test_split_repository_malformed(malformed_repo: str) -> None:
    """Test that ValueError is raised if repo is malformed."""
    with pytest.raises(ValueError):
        await split_repository_in_configuration(malformed_repo)


@pytest.mark.asyncio
async def test_split_repository_strips_slashes() -> None:
    """Test that leading/trailing slashes are stripped before splitting."""
    assert await split_repository_in_configuration("/w3c/csswg-drafts/") == ("w3c", "csswg-drafts")

