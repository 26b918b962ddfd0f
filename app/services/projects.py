from __future__ import annotations

from typing import Any, Optional

from app.config import settings
from app.db.enums import ProjectModeEnum

AGENCY_TYPE_NAMES: dict[str, str] = {
    "web-design": "Web Design Agency",
    "smma": "Social Media Agency",
    "ai-automation": "AI Automation Agency",
    "consulting": "Consulting Business",
    "custom": "Service Business",
}


def derive_project_fields(
    mode: ProjectModeEnum,
    *,
    name: Optional[str] = None,
    description: Optional[str] = None,
    agency_type: Optional[str] = None,
    target_market: Optional[str] = None,
    services_offered: Optional[list[str]] = None,
    niche: Optional[str] = None,
    entry_point: Optional[str] = None,
    product_url: Optional[str] = None,
    product_description: Optional[str] = None,
    product_type: Optional[str] = None,
    prompt: Optional[str] = None,
) -> tuple[str, str, dict[str, Any]]:
    """
    Resolve (name, description, mode_data) for a new project.

    A name given by the caller always wins; otherwise it is derived from the
    mode-specific fields the onboarding wizard collects.
    """
    project_name = (name or "").strip() or "New Project"
    project_description = description or ""
    mode_data: dict[str, Any] = {}

    if mode == ProjectModeEnum.agency:
        mode_data = {
            "agencyType": agency_type or "custom",
            "description": description or "",
            "targetMarket": target_market or "",
            "servicesOffered": list(services_offered or []),
        }
        if not name and agency_type:
            project_name = AGENCY_TYPE_NAMES.get(agency_type, "New Agency")
        project_description = description or f"{project_name} targeting {target_market or 'various clients'}"
    elif mode == ProjectModeEnum.commerce:
        mode_data = {
            "entryPoint": entry_point or "manual",
            "productUrl": product_url,
            "productDescription": product_description,
            "productType": product_type,
            "niche": niche,
        }
        if not name:
            if niche:
                project_name = f"{niche} Store"
            elif product_url:
                project_name = "Product Store"
            else:
                project_name = "E-commerce Store"
        project_description = product_description or niche or "E-commerce store"
    elif prompt:
        mode_data = {"prompt": prompt}

    return project_name, project_description, mode_data


def default_model_id(model_id: Optional[str]) -> str:
    return (model_id or "").strip() or settings.PROJECT_DEFAULT_MODEL
