from __future__ import annotations
from flask import Blueprint, current_app
from helpdesk import get_backend
from helpdesk.decorators.auth import require_session
from helpdesk.errors import BackendError, LookupLoadError, Unauthorized
from helpdesk.models.reference import LookupOption
from helpdesk.services.cascade import CategoryCascade

lkp_bp = Blueprint('lookups', __name__)


def _reference_list(label: str, loader):
    try:
        rows = loader()
    except Unauthorized:
        raise
    except BackendError as e:
        current_app.logger.warning('Failed to fetch %s: %s', label, e.detail)
        raise LookupLoadError(f'Failed to fetch {label}') from e
    return {'data': [LookupOption.from_api(r).to_dict() for r in rows]}


@lkp_bp.get('/categories')
@require_session
def list_categories():
    return _reference_list('categories', get_backend().get_categories)


@lkp_bp.get('/departments')
@require_session
def list_departments():
    return _reference_list('departments', get_backend().get_departments)


@lkp_bp.get('/companies')
@require_session
def list_companies():
    return _reference_list('companies', get_backend().get_companies)


@lkp_bp.get('/categories/<category_id>/cascade')
@require_session
def category_cascade(category_id: str):
    options = CategoryCascade(get_backend()).resolve(category_id)
    return options.to_dict()
