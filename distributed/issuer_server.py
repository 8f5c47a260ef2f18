"""
Issuer HTTP server
Conceals fields, commits the remaining claims and signs the credential
"""

import logging

from flask import Flask, request, jsonify

from csd.config import configure_logging
from csd_issuer import Issuer
from distributed.config import config
from distributed.serialization import serialize_disclosures, serialize_vk

logger = logging.getLogger(__name__)

app = Flask(__name__)

# Global state
issuer_state = {
    'issuer': None,
    'initialized': False
}


@app.route('/health', methods=['GET'])
def health():
    """Health check"""
    return jsonify({'status': 'ok', 'initialized': issuer_state['initialized']})


@app.route('/init', methods=['POST'])
def init():
    """Initialize the issuer (new signing key, curve and parameter seed)"""
    try:
        data = request.get_json(silent=True) or {}
        curve = data.get('curve', config.pairing_curve)
        param_seed = data.get('param_seed', config.param_seed)

        issuer = Issuer(group_name=curve, param_seed=param_seed)

        issuer_state['issuer'] = issuer
        issuer_state['initialized'] = True
        logger.info("Issuer initialized (curve=%s, param_seed=%s)", curve, param_seed)

        return jsonify({
            'success': True,
            'verifying_key': serialize_vk(issuer.get_verifying_key())
        })
    except ValueError as e:
        return jsonify({'success': False, 'error': str(e)}), 400
    except Exception as e:
        logger.exception("Issuer initialization failed")
        return jsonify({'success': False, 'error': str(e)}), 500


@app.route('/verifying_key', methods=['GET'])
def verifying_key():
    """Current verification key of the issuer"""
    if not issuer_state['initialized']:
        return jsonify({'success': False, 'error': 'Issuer not initialized'}), 400

    return jsonify({
        'success': True,
        'verifying_key': serialize_vk(issuer_state['issuer'].get_verifying_key())
    })


@app.route('/issue', methods=['POST'])
def issue():
    """Issue a credential"""
    if not issuer_state['initialized']:
        return jsonify({'success': False, 'error': 'Issuer not initialized'}), 400

    data = request.get_json(silent=True)
    if not isinstance(data, dict) or not isinstance(data.get('claims'), dict):
        return jsonify({'success': False, 'error': "'claims' must be a JSON object"}), 400

    try:
        presentation, disclosures = issuer_state['issuer'].issue(
            data['claims'], data.get('conceal', []))
    except ValueError as e:
        return jsonify({'success': False, 'error': str(e)}), 400
    except Exception as e:
        logger.exception("Issuance failed")
        return jsonify({'success': False, 'error': str(e)}), 500

    return jsonify({
        'success': True,
        'presentation': presentation,
        'disclosures': serialize_disclosures(disclosures)
    })


def main():
    """Start the issuer server"""
    configure_logging()
    host = config.issuer_host
    port = config.issuer_port
    logger.info("Starting issuer server on %s:%s", host, port)
    app.run(host=host, port=port, debug=False)


if __name__ == '__main__':
    main()
