# Error Taxonomy - raised at the seams where the engine can fail


class PosturalAssessmentError(Exception):
    """Base class for every error raised by the assessment engine"""


class DegenerateGeometry(PosturalAssessmentError):
    """A ray or reference segment has zero length"""


class FingerprintingFailure(PosturalAssessmentError):
    """Input media bytes are missing, empty or unreadable"""


class InvalidMedia(PosturalAssessmentError):
    """Upload has an unsupported content type or exceeds the size limit"""


class InvalidPose(PosturalAssessmentError):
    """Landmark sequence does not follow the fixed anatomical index contract"""


class LandmarkExtractionFailure(PosturalAssessmentError):
    """The external landmark producer failed or returned no pose"""


class AnalysisCancelled(PosturalAssessmentError):
    """Caller cancelled the analysis before it was stored"""


class StorageUnavailable(PosturalAssessmentError):
    """History store could not be read or written"""
