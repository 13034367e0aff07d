"""
Dashboard routes: Home page, health check, CSV upload, dataset status.
"""
import logging
import uuid

from flask import Blueprint, jsonify, render_template, request, session

from lead_dashboard.extensions import lead_store
from lead_dashboard.models.lead import UploadInfo
from lead_dashboard.pipeline.ingestion import IngestionError, ingest_upload

logger = logging.getLogger('routes.dashboard')

bp = Blueprint('dashboard', __name__)

TABS = [
    {'id': 'overall-leads', 'label': 'Overall Leads', 'endpoint': '/api/overview'},
    {'id': 'counselor-performance', 'label': 'Counselor Performance', 'endpoint': '/api/counselors'},
    {'id': 'facebook-ads', 'label': 'Facebook Ads Analysis', 'endpoint': '/api/ads'},
    {'id': 'lost-leads', 'label': 'Lost Leads', 'endpoint': '/api/lost'},
]


def session_dataset_id(create: bool = False):
    """The browser session's dataset key; minted on first upload."""
    dataset_id = session.get('dataset_id')
    if dataset_id is None and create:
        dataset_id = str(uuid.uuid4())
        session['dataset_id'] = dataset_id
    return dataset_id


def current_snapshot():
    return lead_store.get(session_dataset_id())


@bp.route('/')
def index():
    """Dashboard shell; tabs load their data from the JSON API."""
    return render_template('home.html', tabs=TABS)


@bp.route('/health')
def health_check():
    """Health check endpoint."""
    return jsonify({"status": "healthy"}), 200


@bp.route('/api/upload', methods=['POST'])
def upload_leads():
    """Ingest an uploaded CSV export, replacing this session's dataset."""
    upload = request.files.get('file')
    if upload is None or not upload.filename:
        return jsonify({'status': 'error', 'error': 'No file uploaded'}), 400

    dataset_id = session_dataset_id(create=True)
    try:
        result = ingest_upload(upload.read(), upload.filename)
    except IngestionError as e:
        snapshot = lead_store.record_failure(dataset_id, str(e))
        return jsonify({'status': 'error', 'error': str(e), 'dataset': snapshot.to_dict()}), 422
    except Exception as e:
        logger.error("Error ingesting %s: %s", upload.filename, e, exc_info=True)
        snapshot = lead_store.record_failure(dataset_id, 'Unexpected error while reading the file')
        return jsonify({'status': 'error', 'error': str(e), 'dataset': snapshot.to_dict()}), 500

    info = UploadInfo(
        filename=upload.filename,
        rows_read=result.rows_read,
        rows_kept=len(result.records),
        uploaded_by=request.form.get('uploaded_by', ''),
    )
    snapshot = lead_store.publish(dataset_id, result.records, info)
    return jsonify({'status': 'success', 'dataset': snapshot.to_dict()})


@bp.route('/api/dataset')
def dataset_status():
    """Whether this session has data, and what the last upload produced."""
    return jsonify(current_snapshot().to_dict())


@bp.route('/api/dataset', methods=['DELETE'])
def clear_dataset():
    """Forget this session's dataset."""
    dataset_id = session_dataset_id()
    if dataset_id:
        lead_store.clear(dataset_id)
    return jsonify({'status': 'success', 'message': 'Dataset cleared'})
