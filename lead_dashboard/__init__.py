"""
Flask application factory.

Creates and configures the Flask app, registers all blueprints.
"""
import os
from flask import Flask, jsonify, request, session, redirect, render_template_string


def create_app(config=None):
    """Create and configure the Flask application. `config` overrides app.config keys."""
    from lead_dashboard.logging_config import configure_logging
    from lead_dashboard.config import SECRET_KEY, MAX_UPLOAD_MB, DASHBOARD_PASSWORD

    app = Flask(
        __name__,
        template_folder=os.path.join(os.path.dirname(os.path.dirname(__file__)), 'templates'),
    )
    app.secret_key = SECRET_KEY
    app.config['MAX_CONTENT_LENGTH'] = MAX_UPLOAD_MB * 1024 * 1024
    app.config['DASHBOARD_PASSWORD'] = DASHBOARD_PASSWORD
    app.config.update(config or {})

    configure_logging(app)
    password = app.config['DASHBOARD_PASSWORD']
    upload_limit_mb = app.config['MAX_CONTENT_LENGTH'] // (1024 * 1024)

    # ── Simple password auth ────────────────────────────────────────────
    LOGIN_PAGE = '''
    <!DOCTYPE html>
    <html lang="en">
    <head>
        <meta charset="UTF-8">
        <meta name="viewport" content="width=device-width, initial-scale=1.0">
        <title>Login · Lead Dashboard</title>
        <script src="https://cdn.tailwindcss.com"></script>
    </head>
    <body class="min-h-screen flex items-center justify-center bg-gray-50">
        <div class="bg-white rounded-xl shadow-sm border border-gray-200 p-10 w-full max-w-sm">
            <h1 class="text-lg font-bold mb-1 text-blue-600">Lead Analytics Dashboard</h1>
            <p class="text-sm mb-6 text-gray-500">Enter password to continue</p>
            {% if error %}
            <p class="text-xs mb-3 text-red-600">Wrong password</p>
            {% endif %}
            <form method="POST" action="/login">
                <input type="password" name="password" autofocus placeholder="Password"
                       class="w-full rounded-lg px-3 py-2.5 text-sm mb-4 border border-gray-300">
                <button type="submit" class="w-full rounded-lg py-2.5 text-sm font-medium text-white bg-blue-600">
                    Log in
                </button>
            </form>
        </div>
    </body>
    </html>
    '''

    OPEN_PATHS = {'/health', '/login'}

    @app.before_request
    def require_login():
        if not password:
            return  # No password set: open access (local dev)
        if request.path in OPEN_PATHS or request.path.startswith('/static/'):
            return
        if session.get('authenticated'):
            return
        if request.path.startswith('/api/'):
            return jsonify({'error': 'Authentication required'}), 401
        return redirect('/login')

    @app.route('/login', methods=['GET', 'POST'])
    def login():
        if request.method == 'POST':
            if request.form.get('password') == password:
                session['authenticated'] = True
                return redirect('/')
            return render_template_string(LOGIN_PAGE, error=True)
        return render_template_string(LOGIN_PAGE, error=False)

    @app.route('/logout')
    def logout():
        session.clear()
        return redirect('/login')

    @app.errorhandler(413)
    def upload_too_large(e):
        return jsonify({
            'status': 'error',
            'error': f'File too large (limit {upload_limit_mb} MB)',
        }), 413

    # Register blueprints
    from lead_dashboard.routes.dashboard import bp as dashboard_bp
    from lead_dashboard.routes.analytics import bp as analytics_bp

    app.register_blueprint(dashboard_bp)
    app.register_blueprint(analytics_bp)

    return app
