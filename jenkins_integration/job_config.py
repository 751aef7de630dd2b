"""
Reconciliation of a Jenkins job's config.xml with what deploys expect.

Deploys that auto-configure their Jenkins jobs make sure the job:
- declares a SAMSON_ prefixed string parameter for every build parameter
  a deploy sends, and
- lists the (project, stage) pairs triggering it inside a marker block of
  its description.

The flow is fetch (cached) -> reconcile in memory -> publish only if changed.
"""

import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field

from .cache import ConfigCache
from .client import JenkinsClient

logger = logging.getLogger(__name__)

BUILD_PARAMETERS_PREFIX = "SAMSON_"
BUILD_PARAMETERS_DEFAULT_VALUE = ""

BUILD_PARAMETERS = {
    "buildStartedBy": "Samson username of the person who started the deployment.",
    "originatedFrom": "Samson project + stage + commit hash from github tag",
    "commit": "Github commit hash of the change deployed.",
    "tag": "Github tags of the commit being deployed.",
    "deployUrl": "Samson url which triggered the current job.",
    "emails": "Emails of the committers, buddy and user for current deployment."
    " Please see samson to exclude the committers email.",
}

JOB_DESCRIPTION_START = (
    "#### SAMSON DESCRIPTION STARTS ####",
    "Following text is generated by Samson. Please do not edit manually.",
    "This job is triggered from following Samson projects and stages:",
)
JOB_DESCRIPTION_END = (
    f"Build Parameters starting with {BUILD_PARAMETERS_PREFIX} are updated "
    "automatically by Samson. Please disable automatic updating"
    " of this jenkins job from the above mentioned samson projects "
    "before manually editing build parameters or description.",
    "#### SAMSON DESCRIPTION ENDS ####",
)

STRING_PARAMETER_TAG = "hudson.model.StringParameterDefinition"
PARAMETERS_PROPERTY_TAG = "hudson.model.ParametersDefinitionProperty"

_XML_DECLARATION = re.compile(r"^\s*<\?xml[^>]*\?>\s*")
_WHITESPACE = re.compile(r"\s+")


def squish(line: str) -> str:
    """Strip a line and collapse internal whitespace runs to one space."""
    return _WHITESPACE.sub(" ", line).strip()


def caller_line(project_name: str, stage_name: str) -> str:
    """The description bullet naming a (project, stage) that triggers the job."""
    return squish(f"* {project_name} - {stage_name}")


class JobConfig:
    """
    A parsed config.xml.

    Jenkins writes an XML 1.1 declaration; it is set aside before parsing
    and written back unchanged by to_xml(). Comments and processing
    instructions inside the root element are kept.
    """

    def __init__(self, config_xml: str):
        match = _XML_DECLARATION.match(config_xml)
        self.declaration = match.group(0).strip() if match else None
        body = config_xml[match.end():] if match else config_xml
        parser = ET.XMLParser(target=ET.TreeBuilder(insert_comments=True, insert_pis=True))
        self.root = ET.fromstring(body, parser=parser)

    def find_first(self, tag: str) -> ET.Element | None:
        """First element with this tag anywhere in the document, root included."""
        return next(self.root.iter(tag), None)

    def to_xml(self) -> str:
        body = ET.tostring(self.root, encoding="unicode")
        if self.declaration:
            return f"{self.declaration}\n{body}"
        return body


@dataclass
class ParsedDescription:
    """A job description split into free text and the marker block callers."""

    content: list[str] = field(default_factory=list)
    callers: list[str] = field(default_factory=list)
    has_start: bool = False
    has_end: bool = False

    @property
    def complete(self) -> bool:
        return self.has_start and self.has_end


def parse_description(text: str) -> ParsedDescription:
    """
    Split a description into ordinary lines and marker block bullets.

    Every line is squished. Lines from the block's first start line through its
    last end line are dropped except for "*" bullets, which become callers.
    An unterminated block runs to the end of the text.
    """
    parsed = ParsedDescription()
    lines = [squish(line) for line in text.splitlines()]
    idx = 0
    while idx < len(lines):
        if lines[idx] == JOB_DESCRIPTION_START[0]:
            parsed.has_start = True
            while idx < len(lines) and lines[idx] != JOB_DESCRIPTION_END[-1]:
                if lines[idx].startswith("*") and lines[idx] not in parsed.callers:
                    parsed.callers.append(lines[idx])
                idx += 1
            if idx < len(lines):
                parsed.has_end = True
        else:
            parsed.content.append(lines[idx])
        idx += 1
    return parsed


def render_description(content: list[str], callers: list[str]) -> str:
    return "\n".join(
        [*content, *JOB_DESCRIPTION_START, *callers, *JOB_DESCRIPTION_END]
    )


def present_build_params(config: JobConfig) -> list[str]:
    """Unprefixed names of the SAMSON_ string parameters the job declares."""
    definitions = config.find_first("parameterDefinitions")
    names = []
    if definitions is None:
        return names
    for param in definitions:
        if param.tag != STRING_PARAMETER_TAG:
            continue
        name = param.findtext("name") or ""
        if name.startswith(BUILD_PARAMETERS_PREFIX):
            names.append(name[len(BUILD_PARAMETERS_PREFIX):])
    return names


def missing_build_params(config: JobConfig) -> list[str]:
    present = set(present_build_params(config))
    return [name for name in BUILD_PARAMETERS if name not in present]


def add_build_parameters(config: JobConfig, missing: list[str]) -> None:
    """Append a SAMSON_ string parameter definition for each missing name."""
    definitions = config.find_first("parameterDefinitions")
    if definitions is None:
        properties = config.root.find("properties")
        if properties is None:
            properties = ET.SubElement(config.root, "properties")
        parameters_property = ET.SubElement(properties, PARAMETERS_PROPERTY_TAG)
        definitions = ET.SubElement(parameters_property, "parameterDefinitions")

    for name in missing:
        param = ET.SubElement(definitions, STRING_PARAMETER_TAG)
        ET.SubElement(param, "name").text = BUILD_PARAMETERS_PREFIX + name
        ET.SubElement(param, "description").text = BUILD_PARAMETERS[name]
        ET.SubElement(param, "defaultValue").text = BUILD_PARAMETERS_DEFAULT_VALUE


def add_job_description(config: JobConfig, caller: str) -> bool:
    """
    Make sure the description's marker block lists caller.

    Returns:
        True if the description was rewritten
    """
    description = config.root.find("description")
    if description is None:
        description = ET.SubElement(config.root, "description")

    parsed = parse_description(description.text or "")
    if parsed.complete and caller in parsed.callers:
        return False

    callers = list(parsed.callers)
    if caller not in callers:
        callers.append(caller)
    description.text = render_description(parsed.content, callers)
    return True


class JobConfigReconciler:
    """Brings a parsed config in line with the expected parameters and description."""

    def reconcile(self, config: JobConfig, project_name: str, stage_name: str) -> bool:
        """
        Mutate config in place.

        Returns:
            True if anything changed and the config needs publishing
        """
        changed = False

        missing = missing_build_params(config)
        if missing:
            logger.debug(f"Adding missing build parameters {missing}")
            add_build_parameters(config, missing)
            changed = True

        if add_job_description(config, caller_line(project_name, stage_name)):
            changed = True

        return changed


class JobConfigFetcher:
    """Reads job configs through the cache."""

    def __init__(self, client: JenkinsClient, cache: ConfigCache):
        self.client = client
        self.cache = cache

    @staticmethod
    def cache_key(job_name: str) -> str:
        return f"{job_name}_conf"

    def fetch(self, job_name: str) -> JobConfig:
        config_xml = self.cache.fetch(
            self.cache_key(job_name), lambda: self.client.get_job_config(job_name)
        )
        return JobConfig(config_xml)


class JobConfigPublisher:
    """Writes a reconciled config back to Jenkins when it changed."""

    def __init__(self, client: JenkinsClient, cache: ConfigCache):
        self.client = client
        self.cache = cache

    def publish(self, job_name: str, config: JobConfig, changed: bool) -> bool:
        if not changed:
            return False
        config_xml = config.to_xml()
        self.client.post_job_config(job_name, config_xml)
        # Keep the cache in step with what Jenkins now has
        self.cache.write(JobConfigFetcher.cache_key(job_name), config_xml)
        return True


class JobConfigurator:
    """Runs fetch -> reconcile -> publish for one job."""

    def __init__(
        self,
        fetcher: JobConfigFetcher,
        publisher: JobConfigPublisher,
        reconciler: JobConfigReconciler | None = None,
    ):
        self.fetcher = fetcher
        self.publisher = publisher
        self.reconciler = reconciler or JobConfigReconciler()

    @classmethod
    def build(cls, client: JenkinsClient, cache: ConfigCache) -> "JobConfigurator":
        return cls(JobConfigFetcher(client, cache), JobConfigPublisher(client, cache))

    def configure_job(self, job_name: str, project_name: str, stage_name: str) -> bool:
        """
        Reconcile and publish the config of job_name.

        Returns:
            True if the config was changed and posted
        """
        config = self.fetcher.fetch(job_name)
        changed = self.reconciler.reconcile(config, project_name, stage_name)
        if changed:
            logger.info(
                f"Jenkins job '{job_name}' config out of date for "
                f"{project_name} - {stage_name}, publishing"
            )
        return self.publisher.publish(job_name, config, changed)
