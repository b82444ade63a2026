class InternalURIs:
    API = "/api"
    V1 = API + "/v1"
    VALIDATE_API_KEY = V1 + "/validate-api-key"
    EXTRACT_LAYOUT = V1 + "/extract-layout"
    RESOLVE_POSITIONS = V1 + "/resolve-positions"
    REFERENCES = V1 + "/references"
    REFERENCE_FACTS = REFERENCES + "/{reference_id}/facts"
    REFERENCE_FEEDBACK = REFERENCES + "/{reference_id}/feedback"
    MATCH_CLAIMS = V1 + "/match-claims"
    MATCH_RESULTS = V1 + "/match-results/{job_id}"
