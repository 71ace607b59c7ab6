"""Permissions granted to each financial role."""

from __future__ import annotations

from typing import Dict, List

ROLE_PERMISSIONS: Dict[str, List[str]] = {
    "broker": [
        "create_loans",
        "update_applications",
        "view_products",
        "analyze_clients",
        "generate_quotes",
    ],
    "underwriter": [
        "access_credit_data",
        "generate_scores",
        "verify_documents",
        "fraud_detection",
        "make_underwriting_decisions",
        "override_ai_decisions",
    ],
    "portfolio_manager": [
        "view_portfolio_data",
        "generate_reports",
        "access_risk_models",
        "update_parameters",
        "execute_trades",
        "modify_allocations",
    ],
    "servicer": [
        "process_payments",
        "handle_delinquencies",
        "send_notifications",
        "manage_communications",
        "manage_delinquencies",
        "initiate_workouts",
    ],
    "risk_analyst": [
        "monitor_risks",
        "trigger_alerts",
        "run_stress_tests",
        "analyze_scenarios",
        "access_risk_data",
    ],
    "compliance_officer": [
        "scan_compliance",
        "generate_compliance_reports",
        "access_regulatory_data",
        "audit_transactions",
    ],
    "decision_maker": [
        "make_ai_decisions",
        "override_decisions",
        "explain_decisions",
        "access_all_data",
        "approve_high_risk",
    ],
    "universal": [
        "access_ml_models",
        "generate_predictions",
        "access_market_data",
        "analyze_trends",
        "perform_calculations",
        "create_models",
    ],
}


def permissions_for(role: str) -> List[str]:
    return list(ROLE_PERMISSIONS.get(role, []))
