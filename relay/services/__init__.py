from relay.services.admission_service import (
    Admission,
    AdmissionDecision,
    AdmissionLimits,
    AdmissionPipeline,
    AdmissionState,
)
from relay.services.content_filter import scrub_terms
from relay.services.shaping_service import shape_reply
