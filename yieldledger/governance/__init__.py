from yieldledger.governance.governor import RateGovernor

__all__ = ["RateGovernor"]
