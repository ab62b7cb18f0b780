#!/usr/bin/env python3
import logging
from datetime import datetime, timedelta

from flask import Flask, jsonify, request
from flask_cors import CORS

from .config import Config
from .database import ReadingDatabase
from .engine import PsychrometricEngine, humidity_ratio_from_rh
from .errors import InvalidInput, PsychrometricError
from .models import SOURCE_MANUAL, Reading, percent_to_fraction

logger = logging.getLogger(__name__)

RH_LINES = (10, 20, 30, 40, 50, 60, 70, 80, 90)     # percent
CHART_TEMPERATURES = range(0, 51, 5)                # degC


def parse_range_param(range_str: str, now: datetime | None = None):
    """Map a range query (15m, 6h, 7d, all or an ISO start) to (start, end)."""
    end = now or datetime.now()
    if not range_str or range_str == '1m':
        start = end - timedelta(minutes=1)
    elif range_str == 'all':
        return None, end
    elif range_str[:-1].isdigit() and range_str[-1] in 'mhd':
        amount = int(range_str[:-1])
        unit = {'m': 'minutes', 'h': 'hours', 'd': 'days'}[range_str[-1]]
        start = end - timedelta(**{unit: amount})
    else:
        try:
            start = datetime.fromisoformat(range_str)
        except ValueError:
            logger.debug("Unparseable range %r, using 1h", range_str)
            start = end - timedelta(hours=1)
    return start, end


def _mean(values):
    return sum(values) / len(values) if values else None


def _manual_reading():
    if request.method == 'POST':
        data = request.get_json(silent=True) or request.form
    else:
        data = request.args
    try:
        dry = float(data['dryBulb'])
        wet = float(data['wetBulb'])
    except KeyError as e:
        raise InvalidInput(f"missing parameter {e.args[0]}")
    except (TypeError, ValueError):
        raise InvalidInput("dryBulb and wetBulb must be numbers")
    return Reading(dry_bulb=dry, wet_bulb=wet, source=SOURCE_MANUAL)


def create_app(config: Config | None = None, db: ReadingDatabase | None = None,
               recorder=None, engine: PsychrometricEngine | None = None) -> Flask:
    config = config or Config.from_env()
    db = db or ReadingDatabase(db_file=config.db_file)
    engine = engine or PsychrometricEngine(limits=config.limits)

    app = Flask(__name__)
    CORS(app)

    @app.errorhandler(PsychrometricError)
    def rejected(e):
        return jsonify(e.to_dict()), 400

    @app.route('/api/latest')
    def api_latest():
        state = recorder.latest if recorder is not None else None
        if state is None:
            state = db.get_latest()
        if state is None:
            return jsonify({'error': 'no_data', 'message': 'no reading recorded yet'}), 404
        return jsonify(state.to_dict())

    @app.route('/api/readings')
    def api_readings():
        start_time, end_time = parse_range_param(request.args.get('range', '1m'))
        limit = request.args.get('limit', type=int)
        rows = db.get_readings(start_time=start_time, end_time=end_time, limit=limit)
        return jsonify({'readings': [r.to_dict() for r in rows]})

    @app.route('/api/average')
    def api_average():
        start_time, end_time = parse_range_param(request.args.get('range', '1m'))
        rows = db.get_readings(start_time=start_time, end_time=end_time)
        return jsonify({
            'avgDryBulb': _mean([r.dry_bulb for r in rows]),
            'avgWetBulb': _mean([r.wet_bulb for r in rows]),
            'avgRelativeHumidity': _mean([r.relative_humidity_percent for r in rows]),
            'avgDewPoint': _mean([r.dew_point for r in rows]),
            'count': len(rows),
        })

    @app.route('/api/calculate', methods=['GET', 'POST'])
    def api_calculate():
        # manual entries are displayed only, never stored
        state = engine.compute(_manual_reading())
        return jsonify(state.to_dict())

    @app.route('/api/chart/rh-lines')
    def api_rh_lines():
        lines = []
        for rh in RH_LINES:
            points = [
                {'x': t, 'y': humidity_ratio_from_rh(t, percent_to_fraction(rh)) * 1000}
                for t in CHART_TEMPERATURES
            ]
            lines.append({'relativeHumidity': rh, 'points': points})
        return jsonify({'lines': lines})

    @app.route('/api/health')
    def api_health():
        body = {'status': 'ok', 'count': db.get_counts()}
        if recorder is not None:
            body['recorder'] = recorder.stats()
            if not body['recorder']['running']:
                body['status'] = 'degraded'
        return jsonify(body)

    return app


def main():
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    config = Config.from_env()
    app = create_app(config)
    logger.info("Starting Flask app on %s:%s, DB=%s", config.host, config.port, config.db_file)
    app.run(host=config.host, port=config.port, debug=False)


if __name__ == '__main__':
    main()
