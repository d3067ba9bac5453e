"""Template repository management."""

from .archive import extract_zip, flatten_single_directory
from .fetchers import (
    AzureDevOpsFetcher,
    GitFetcher,
    GitHubFetcher,
    TemplateFetcher,
    select_fetcher,
)
from .manager import TemplateManager, copy_tree, is_valid_template_dir

__all__ = [
    "AzureDevOpsFetcher",
    "GitFetcher",
    "GitHubFetcher",
    "TemplateFetcher",
    "TemplateManager",
    "copy_tree",
    "extract_zip",
    "flatten_single_directory",
    "is_valid_template_dir",
    "select_fetcher",
]
