"""Command-line entry point for donation stats and intake"""
import argparse
import json
import logging
import sys
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from donation_stats.config import Settings
from donation_stats.models.validation import ValidationResult
from donation_stats.services.donations import DonationNotFoundError, DonationService
from donation_stats.services.ledger import LedgerReader, LedgerUnavailableError, open_ledger
from donation_stats.services.stats import DateRangeError, StatsService, parse_date_range
from donation_stats.utils.json_encoder import DateTimeEncoder
from donation_stats.validator import DonationValidator

logger = logging.getLogger(__name__)

EXIT_INVALID_INPUT = 1
EXIT_LEDGER_UNAVAILABLE = 2

# aggregation name -> (StatsService method, metadata count key)
AGGREGATIONS = {
    'daily': ('daily_stats', 'totalDays'),
    'weekly': ('weekly_stats', 'totalWeeks'),
    'summary': ('summary_stats', None),
    'donors': ('donor_stats', 'totalDonors'),
    'recipients': ('recipient_stats', 'totalRecipients'),
}

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='donation_stats', description='Donation statistics and intake')
    sub = parser.add_subparsers(dest='command', required=True)

    stats = sub.add_parser('stats', help='Aggregate donations over a date range')
    stats.add_argument('aggregation', choices=sorted(AGGREGATIONS))
    stats.add_argument('--start', help='Start date (YYYY-MM-DD or ISO 8601)')
    stats.add_argument('--end', help='End date (YYYY-MM-DD or ISO 8601)')

    donate = sub.add_parser('donate', help='Validate and record a donation')
    donate.add_argument('--amount', required=True)
    donate.add_argument('--recipient')
    donate.add_argument('--donor')

    validate = sub.add_parser('validate', help='Check a donation against the limits without recording it')
    validate.add_argument('--amount', required=True)
    validate.add_argument('--donor')

    sub.add_parser('limits', help='Show configured donation limits')

    recent = sub.add_parser('recent', help='List recent donations')
    recent.add_argument('--limit', default='10')

    sub.add_parser('list', help='List every recorded donation')

    show = sub.add_parser('show', help='Show one donation')
    show.add_argument('--id', dest='donation_id', required=True)

    return parser

def parse_amount(raw: str) -> Any:
    """Decimal for numeric input; anything else is passed through for the validator to reject"""
    try:
        return Decimal(raw)
    except InvalidOperation:
        return raw

def error_payload(code: str, message: str) -> Dict[str, Any]:
    return {'success': False, 'error': {'code': code, 'message': message}}

def run_stats(stats: StatsService, aggregation: str, start_raw: Optional[str], end_raw: Optional[str]) -> Dict[str, Any]:
    start, end = parse_date_range(start_raw, end_raw)
    method, count_key = AGGREGATIONS[aggregation]
    result = getattr(stats, method)(start, end)

    if count_key is None:
        return {'success': True, 'data': result.to_dict()}

    buckets: List[Dict[str, Any]] = [bucket.to_dict() for bucket in result]
    metadata: Dict[str, Any] = {
        'dateRange': {'start': start.isoformat(), 'end': end.isoformat()},
        count_key: len(buckets),
    }
    if aggregation in ('daily', 'weekly'):
        metadata['aggregationType'] = aggregation
    return {'success': True, 'data': buckets, 'metadata': metadata}

def validation_payload(result: ValidationResult, data: Any = None) -> Dict[str, Any]:
    if not result.valid:
        return {'success': False, 'error': result.to_dict()}
    return {'success': True, 'data': data}

def run_command(args: argparse.Namespace, ledger: LedgerReader, donations: DonationService) -> Dict[str, Any]:
    if args.command == 'stats':
        return run_stats(StatsService(ledger), args.aggregation, args.start, args.end)
    if args.command == 'donate':
        result, transaction = donations.submit(parse_amount(args.amount), args.recipient, args.donor)
        return validation_payload(result, transaction.to_record() if transaction else None)
    if args.command == 'validate':
        result = donations.check(parse_amount(args.amount), args.donor)
        return validation_payload(result, {'valid': True})
    if args.command == 'list':
        records = [tx.to_record() for tx in donations.all()]
        return {'success': True, 'data': records, 'count': len(records)}
    if args.command == 'show':
        return {'success': True, 'data': donations.get(args.donation_id).to_record()}
    return {'success': True, 'data': donations.recent(args.limit)}

def main(argv: Optional[List[str]] = None, settings: Optional[Settings] = None) -> int:
    """Run one command and print its JSON payload. Returns the process exit code."""
    args = build_parser().parse_args(argv)
    settings = settings or Settings()

    logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO), format='%(message)s')

    validator = DonationValidator(settings.validation_limits)
    exit_code = 0

    try:
        if args.command == 'limits':
            payload = {'success': True, 'data': validator.get_limits().model_dump(by_alias=True)}
        else:
            with open_ledger(settings) as ledger:
                payload = run_command(args, ledger, DonationService(ledger, validator))

        if not payload['success']:
            exit_code = EXIT_INVALID_INPUT

    except DonationNotFoundError as e:
        payload = error_payload(e.code, str(e))
        exit_code = EXIT_INVALID_INPUT
    except DateRangeError as e:
        payload = error_payload(e.code, e.message)
        exit_code = EXIT_INVALID_INPUT
    except ValueError as e:
        payload = error_payload('INVALID_INPUT', str(e))
        exit_code = EXIT_INVALID_INPUT
    except LedgerUnavailableError as e:
        logger.error(f"Ledger unavailable: {e}")
        payload = error_payload('LEDGER_UNAVAILABLE', str(e))
        exit_code = EXIT_LEDGER_UNAVAILABLE

    print(json.dumps(payload, indent=2, cls=DateTimeEncoder))
    return exit_code

if __name__ == "__main__":
    sys.exit(main())
