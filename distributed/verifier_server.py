"""
Verifier HTTP server
Checks presentations: segments, issuer signature, accumulator witnesses
"""

import binascii
import logging

from ecdsa import MalformedPointError
from flask import Flask, request, jsonify

from csd.config import configure_logging
from csd.errors import CsdError, MembershipVerificationError
from csd_verifier import Verifier
from distributed.config import config
from distributed.serialization import deserialize_vk

logger = logging.getLogger(__name__)

app = Flask(__name__)

# Global state
verifier_state = {
    'verifier': None,
    'initialized': False
}


@app.route('/health', methods=['GET'])
def health():
    """Health check"""
    return jsonify({'status': 'ok', 'initialized': verifier_state['initialized']})


@app.route('/init', methods=['POST'])
def init():
    """Initialize the verifier with the issuer's verification key"""
    data = request.get_json(silent=True) or {}
    try:
        vk = deserialize_vk(data['verifying_key'])
    except (KeyError, TypeError, ValueError, binascii.Error, MalformedPointError) as e:
        return jsonify({'success': False, 'error': f"Invalid verifying key: {e}"}), 400

    if verifier_state['initialized']:
        verifier_state['verifier'].update_verifying_key(vk)
    else:
        verifier_state['verifier'] = Verifier(vk)
        verifier_state['initialized'] = True

    return jsonify({'success': True})


@app.route('/verify', methods=['POST'])
def verify():
    """Verify a presentation and return the disclosed claims"""
    if not verifier_state['initialized']:
        return jsonify({'success': False, 'error': 'Verifier not initialized'}), 400

    data = request.get_json(silent=True)
    if not isinstance(data, dict) or not isinstance(data.get('presentation'), str):
        return jsonify({'success': False, 'error': "'presentation' must be a string"}), 400

    try:
        claims = verifier_state['verifier'].verify_presentation(data['presentation'])
    except MembershipVerificationError as e:
        return jsonify({
            'success': True,
            'valid': False,
            'error': str(e),
            'failed_claims': e.failed_claims
        })
    except CsdError as e:
        return jsonify({'success': False, 'valid': False, 'error': str(e)}), 400
    except Exception as e:
        logger.exception("Verification failed")
        return jsonify({'success': False, 'valid': False, 'error': str(e)}), 500

    return jsonify({'success': True, 'valid': True, 'claims': claims})


def main():
    """Start the verifier server"""
    configure_logging()
    host = config.verifier_host
    port = config.verifier_port
    logger.info("Starting verifier server on %s:%s", host, port)
    app.run(host=host, port=port, debug=False)


if __name__ == '__main__':
    main()
