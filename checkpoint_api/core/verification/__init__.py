from .verifier import VerificationResult, extract_committed_root, extract_memo_cid, verify_readings

__all__ = ["VerificationResult", "extract_committed_root", "extract_memo_cid", "verify_readings"]
