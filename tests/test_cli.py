"""
Tests for the bgpsec-filter command line interface

Each test runs main() against a SQLite store in a temporary directory.
"""

import io
import json
import logging
import shutil
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path
from unittest.mock import patch

from bgpsec_filter.main import create_parser, main
from bgpsec_filter.utils.config import reset_config_manager

SKI_HEX = "8a4f5b9e1c0d2e3f4a5b6c7d8e9f0a1b2c3d4e5f"


class TestCLI(unittest.TestCase):

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())
        self.env = patch.dict('os.environ', {
            'BGPSEC_FILTER_STORE': 'sqlite',
            'BGPSEC_FILTER_DB_PATH': str(self.temp_dir / 'slurm.db'),
        })
        self.env.start()
        reset_config_manager()
        root = logging.getLogger()
        self.addCleanup(setattr, root, "handlers", root.handlers[:])
        self.addCleanup(root.setLevel, root.level)

    def tearDown(self):
        reset_config_manager()
        self.env.stop()
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def run_cli(self, *argv):
        """Run main() and return (exit code, stdout)"""
        output = io.StringIO()
        with redirect_stdout(output):
            code = main([argv[0], '-q', *argv[1:]])
        reset_config_manager()
        return code, output.getvalue()

    def list_json(self):
        code, output = self.run_cli('list', '--json')
        self.assertEqual(code, 0)
        return json.loads(output)

    def test_no_command_prints_help(self):
        output = io.StringIO()
        with redirect_stdout(output):
            self.assertEqual(main([]), 1)
        self.assertIn('usage:', output.getvalue())

    def test_add_and_list(self):
        code, output = self.run_cli('add', '--asn', 'AS64500', '--comment', 'edge router')
        self.assertEqual(code, 0)
        self.assertIn('Added BGPsec filter 0', output)

        code, _ = self.run_cli('add', '--ski', SKI_HEX.upper())
        self.assertEqual(code, 0)

        self.assertEqual(self.list_json(), [
            {'id': 0, 'asn': 64500, 'comment': 'edge router'},
            {'id': 1, 'SKI': SKI_HEX},
        ])

        code, output = self.run_cli('list')
        self.assertEqual(code, 0)
        self.assertIn('AS64500', output)
        self.assertIn(SKI_HEX, output)

    def test_list_empty(self):
        code, output = self.run_cli('list')
        self.assertEqual(code, 0)
        self.assertIn('No BGPsec filters configured', output)

    def test_add_invalid(self):
        """Test that invalid filters exit with status 1 and store nothing."""
        code, output = self.run_cli('add')
        self.assertEqual(code, 1)
        self.assertIn('at least one of asn or SKI', output)

        code, _ = self.run_cli('add', '--asn', 'AS99999999999')
        self.assertEqual(code, 1)

        self.assertEqual(self.list_json(), [])

    def test_remove(self):
        self.run_cli('add', '--asn', '64500')
        self.run_cli('add', '--asn', '64501')

        code, output = self.run_cli('remove', '0')
        self.assertEqual(code, 0)
        self.assertIn('Removed BGPsec filter 0', output)

        code, output = self.run_cli('remove', '0')
        self.assertEqual(code, 0)
        self.assertIn('not found', output)

        self.assertEqual([entry['id'] for entry in self.list_json()], [1])

    def test_clear_requires_confirmation(self):
        self.run_cli('add', '--asn', '64500')

        code, _ = self.run_cli('clear')
        self.assertEqual(code, 1)
        self.assertEqual(len(self.list_json()), 1)

        code, _ = self.run_cli('clear', '--yes')
        self.assertEqual(code, 0)
        self.assertEqual(self.list_json(), [])

    def test_export_and_import(self):
        self.run_cli('add', '--asn', '64500', '--comment', 'exported')
        slurm_file = self.temp_dir / 'slurm.json'

        code, _ = self.run_cli('export', '-o', str(slurm_file))
        self.assertEqual(code, 0)
        with open(slurm_file) as f:
            document = json.load(f)
        self.assertEqual(document['validationOutputFilters']['bgpsecFilters'],
                         [{'asn': 64500, 'comment': 'exported'}])

        self.run_cli('clear', '--yes')
        code, output = self.run_cli('import', str(slurm_file))
        self.assertEqual(code, 0)
        self.assertIn('Imported 1 BGPsec filters', output)
        self.assertEqual([entry['asn'] for entry in self.list_json()], [64500])

    def test_export_to_stdout(self):
        self.run_cli('add', '--ski', 'abcd')
        code, output = self.run_cli('export')
        self.assertEqual(code, 0)
        self.assertEqual(json.loads(output)['validationOutputFilters']['bgpsecFilters'],
                         [{'SKI': 'abcd'}])

    def test_import_invalid_file(self):
        bad = self.temp_dir / 'bad.json'
        bad.write_text(json.dumps({'slurmVersion': 2}))
        code, output = self.run_cli('import', str(bad))
        self.assertEqual(code, 1)
        self.assertIn('slurmVersion', output)

    def test_apply(self):
        """Test filtering an rpki-client file to a native output file."""
        keys = self.temp_dir / 'rpki-client.json'
        keys.write_text(json.dumps({'bgpsec_keys': [
            {'asn': 65001, 'ski': 'aa', 'ta': 'ripe'},
            {'asn': 65002, 'ski': 'bb', 'ta': 'ripe'},
        ]}))
        self.run_cli('add', '--asn', '65001')
        output_file = self.temp_dir / 'filtered.json'

        code, output = self.run_cli('apply', str(keys), '-o', str(output_file))

        self.assertEqual(code, 0)
        self.assertIn('Wrote 1 router certificates', output)
        with open(output_file) as f:
            data = json.load(f)
        self.assertEqual([c['asn'] for c in data['routerCertificates']], [[65002]])

    def test_apply_to_stdout(self):
        keys = self.temp_dir / 'routinator.json'
        keys.write_text(json.dumps({'routerKeys': [
            {'asn': 'AS65001', 'SKI': 'aa', 'source': [{'tal': 'arin'}]},
            {'asn': 'AS65002', 'SKI': 'bb', 'source': [{'tal': 'arin'}]},
        ]}))
        self.run_cli('add', '--ski', 'BB')

        code, output = self.run_cli('apply', str(keys))

        self.assertEqual(code, 0)
        lines = [json.loads(line) for line in output.splitlines()]
        self.assertEqual(lines, [{'asn': [65001], 'ski': 'aa', 'ta': 'arin'}])

    def test_failed_apply_keeps_existing_output(self):
        """Test that a failed apply leaves the previous output file intact."""
        output_file = self.temp_dir / 'filtered.json'
        output_file.write_text('{"routerCertificates": []}')
        bad = self.temp_dir / 'unknown.json'
        bad.write_text(json.dumps({'roas': []}))

        code, _ = self.run_cli('apply', str(bad), '-o', str(output_file))

        self.assertEqual(code, 1)
        self.assertEqual(json.loads(output_file.read_text()), {'routerCertificates': []})
        self.assertEqual(list(self.temp_dir.glob('.filtered.json.*')), [])

    def test_apply_missing_input(self):
        code, output = self.run_cli('apply', str(self.temp_dir / 'missing.json'))
        self.assertEqual(code, 1)
        self.assertIn('File not found', output)

    def test_missing_config_file(self):
        code, output = self.run_cli('list', '--config', str(self.temp_dir / 'nope.json'))
        self.assertEqual(code, 1)
        self.assertIn('Configuration file not found', output)

    def test_config_file_selects_store(self):
        """Test that a config file can select the database path."""
        db_path = self.temp_dir / 'from-config.db'
        config_file = self.temp_dir / 'config.json'
        config_file.write_text(json.dumps({'store': {'backend': 'sqlite', 'db_path': str(db_path)}}))

        with patch.dict('os.environ', {'BGPSEC_FILTER_DB_PATH': ''}):
            code, _ = self.run_cli('add', '--asn', '64500', '--config', str(config_file))

        self.assertEqual(code, 0)
        self.assertTrue(db_path.exists())


class TestParser(unittest.TestCase):

    def test_apply_format_choices(self):
        parser = create_parser()
        args = parser.parse_args(['apply', 'keys.json', '--format', 'routinator'])
        self.assertEqual(args.format, 'routinator')
        with patch('sys.stderr', io.StringIO()), self.assertRaises(SystemExit):
            parser.parse_args(['apply', 'keys.json', '--format', 'bird'])

    def test_common_flags_after_command(self):
        args = create_parser().parse_args(['list', '--json', '-v'])
        self.assertTrue(args.verbose)
        self.assertTrue(args.json)


if __name__ == '__main__':
    unittest.main()
