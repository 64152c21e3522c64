"""Pipeline operations for CircleCI projects."""

from .pipelines import Pipelines, pipeline_slug

__all__ = ["Pipelines", "pipeline_slug"]
