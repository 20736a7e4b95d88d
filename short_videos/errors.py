"""Hard stage failures. Benign absence is `results.Absent`, never an exception."""


class PipelineError(Exception):
    """Base class for failures that abort one item's processing."""


class ConfigurationError(PipelineError):
    """A credential or setting required by a stage is missing."""


class DownloadError(PipelineError):
    """The source video could not be acquired."""


class MediaToolError(PipelineError):
    """ffmpeg failed on a step that has no fallback."""


class UploadError(PipelineError):
    """The object store rejected an upload or returned no URL."""


class TranscriptionError(PipelineError):
    """The speech-to-text service failed."""


class EnrichmentError(PipelineError):
    """The generative-language request failed."""


class DatastoreError(PipelineError):
    """A datastore read or write failed."""


class ListingError(DatastoreError):
    """The eligibility query failed; the whole run aborts."""
