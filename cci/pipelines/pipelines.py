"""Pipeline list and trigger operations."""

import logging
from urllib.parse import quote

from opentelemetry import trace

from ..models import Page, Pipeline, Remote, TriggerParameters, VcsType
from ..rest import RestClient

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


def pipeline_slug(remote: Remote) -> str:
    """
    Build the relative pipeline collection path for a project.

    The VCS type is lowercased; organization and project are escaped independently
    so a ``/`` inside either never becomes a path separator.

    Raises:
        ValueError: If the VCS type is not one CircleCI builds from.
    """
    if remote.vcs_type is VcsType.UNKNOWN:
        raise ValueError(f"Unsupported VCS type for pipelines: {remote.vcs_type.value!r}")
    return "project/{}/{}/{}/pipeline".format(
        quote(remote.vcs_type.value.lower(), safe=""),
        quote(remote.organization, safe=""),
        quote(remote.project, safe=""),
    )


class Pipelines:
    """CircleCI pipeline operations."""

    def __init__(self, rest_client: RestClient):
        """Initialize with reference to the REST client."""
        self._client = rest_client

    def get(self, remote: Remote) -> list[Pipeline]:
        """
        Retrieve the pipelines of a project.

        Args:
            remote (Remote): The project to list pipelines for.

        Returns:
            list[Pipeline]: Pipelines in server order, most recent first.

        Raises:
            CciError: Any error raised by the REST client, unchanged.
        """
        with tracer.start_as_current_span("cci_list_pipelines") as span:
            span.set_attribute("cci.operation", "list_pipelines")
            span.set_attribute("cci.organization", remote.organization)
            span.set_attribute("cci.project", remote.project)

            request = self._client.new_request("GET", pipeline_slug(remote))
            result = self._client.do_request(request, Page[Pipeline])
            pipelines = list(result.value.items)

            span.set_attribute("cci.pipelines_count", len(pipelines))
            logger.info(
                f"Retrieved {len(pipelines)} pipelines for "
                f"{remote.vcs_type.value}/{remote.organization}/{remote.project}"
            )
            return pipelines

    def trigger(self, remote: Remote, params: TriggerParameters | None = None) -> Pipeline:
        """
        Trigger a new pipeline for a project.

        Args:
            remote (Remote): The project to trigger.
            params (TriggerParameters, optional): Branch to build. Without one the
                server builds the default branch.

        Returns:
            Pipeline: The newly created pipeline.

        Raises:
            CciError: Any error raised by the REST client, unchanged.
        """
        params = params or TriggerParameters()

        with tracer.start_as_current_span("cci_trigger_pipeline") as span:
            span.set_attribute("cci.operation", "trigger_pipeline")
            span.set_attribute("cci.organization", remote.organization)
            span.set_attribute("cci.project", remote.project)

            logger.info(
                f"Triggering pipeline for {remote.organization}/{remote.project} "
                f"branch={params.branch or '<default>'}"
            )
            request = self._client.new_request("POST", pipeline_slug(remote), params)
            pipeline = self._client.do_request(request, Pipeline).value

            span.set_attribute("cci.pipeline_number", pipeline.number)
            logger.info(f"Created pipeline {pipeline.id} (number {pipeline.number})")
            return pipeline
