# Copyright (c) US Inc. All rights reserved.
import json
import unittest

from tuneforge.core.exceptions import ParseError
from tuneforge.services.output_normalizer import (
    COMPETENCY_SCHEMA, FieldSpec, OutputNormalizer, RecordSchema, normalize_generated_records,
)

FIELDS = ['Name', 'Description', 'Effectively Used', 'Under Used', 'Over Used', 'Development Actions']


def competency(i):
    return {
        'Name': f'Competency {i}',
        'Description': 'Plans the budget.',
        'Effectively Used': 'Forecasts hold.',
        'Under Used': 'Budgets drift.',
        'Over Used': 'Rigid plans.',
        'Development Actions': 'Review variance weekly.',
    }


class TestOutputNormalizer(unittest.TestCase):

    def test_top_level_array_is_capped(self):
        raw = json.dumps([competency(i) for i in range(25)])
        result = normalize_generated_records(raw)
        self.assertTrue(result.success)
        self.assertEqual(len(result.records), 10)
        self.assertEqual(result.records[0]['Name'], 'Competency 0')
        self.assertEqual(result.records[9]['Name'], 'Competency 9')

    def test_every_record_has_exactly_the_schema_fields(self):
        raw = json.dumps([{'Name': 'X', 'Extra': 'dropped'}])
        record = normalize_generated_records(raw).records[0]
        self.assertEqual(list(record.keys()), FIELDS)
        self.assertEqual(record['Name'], 'X')
        self.assertEqual(record['Description'], '')
        self.assertNotIn('Extra', record)

    def test_aliases_are_recognized(self):
        raw = json.dumps({'roles': [{
            'name': 'N',
            'description': 'D',
            'effectivelyUsed': 'E',
            'under_used': 'U',
            'overused': 'O',
            'development_actions': 'A',
        }]})
        record = normalize_generated_records(raw).records[0]
        self.assertEqual(record, {
            'Name': 'N',
            'Description': 'D',
            'Effectively Used': 'E',
            'Under Used': 'U',
            'Over Used': 'O',
            'Development Actions': 'A',
        })

    def test_canonical_key_wins_over_alias(self):
        raw = json.dumps([{'Name': 'canonical', 'name': 'alias'}])
        self.assertEqual(normalize_generated_records(raw).records[0]['Name'], 'canonical')

    def test_empty_value_falls_through_to_alias(self):
        raw = json.dumps([{'Name': '', 'name': 'alias', 'Description': None}])
        record = normalize_generated_records(raw).records[0]
        self.assertEqual(record['Name'], 'alias')
        self.assertEqual(record['Description'], '')

    def test_non_string_values_are_stringified(self):
        raw = json.dumps([{'Name': 7, 'Description': ['a', 'b']}])
        record = normalize_generated_records(raw).records[0]
        self.assertEqual(record['Name'], '7')
        self.assertEqual(record['Description'], '["a", "b"]')

    def test_non_object_entries_become_blank_records(self):
        record = normalize_generated_records('["just a string"]').records[0]
        self.assertEqual(record, {name: '' for name in FIELDS})

    def test_competencies_wrapper(self):
        raw = json.dumps({'competencies': [competency(1), competency(2)]})
        self.assertEqual(len(normalize_generated_records(raw).records), 2)

    def test_first_list_field_fallback(self):
        raw = json.dumps({'model': 'x', 'items': [competency(1)], 'other': [competency(2)]})
        records = normalize_generated_records(raw).records
        self.assertEqual(len(records), 1)
        self.assertEqual(records[0]['Name'], 'Competency 1')

    def test_output_is_idempotent(self):
        first = normalize_generated_records(json.dumps({'roles': [{'name': 'N', 'underUsed': 'U'}]}))
        second = normalize_generated_records(json.dumps(first.records))
        self.assertEqual(first.records, second.records)

    def test_invalid_json_returns_error_and_preview(self):
        raw = 'Sure! Here are your competencies: ' + 'x' * 1000
        result = normalize_generated_records(raw)
        self.assertFalse(result.success)
        self.assertEqual(result.records, [])
        self.assertIn('not valid JSON', result.error)
        self.assertEqual(result.raw_sample, raw[:500])

    def test_object_without_array(self):
        result = normalize_generated_records('{"Name": "X"}')
        self.assertFalse(result.success)
        self.assertEqual(result.error, 'Top-level object does not contain an array')
        self.assertEqual(result.raw_sample, '{"Name": "X"}')

    def test_scalar_root(self):
        result = normalize_generated_records('42')
        self.assertEqual(result.error, 'Response root is neither array nor object')

    def test_empty_array_is_a_failure(self):
        result = normalize_generated_records('{"roles": []}')
        self.assertFalse(result.success)
        self.assertEqual(result.error, 'Extracted value is not a non-empty array')

    def test_deeply_nested_response_is_a_failure(self):
        for raw in ('[' * 100000, '{"roles": ' * 100000):
            result = normalize_generated_records(raw)
            self.assertFalse(result.success)
            self.assertEqual(result.records, [])
            self.assertIn('not valid JSON', result.error)
            self.assertEqual(result.raw_sample, raw[:500])

    def test_extract_raises_parse_error(self):
        with self.assertRaises(ParseError):
            OutputNormalizer().extract('')

    def test_custom_schema(self):
        schema = RecordSchema(fields=(FieldSpec('title', ('heading',)),), wrapper_keys=('rows',), cap=2)
        normalizer = OutputNormalizer(schema, preview_chars=5)
        result = normalizer.normalize(json.dumps({'rows': [{'heading': 'a'}, {'title': 'b'}, {'title': 'c'}]}))
        self.assertEqual(result.records, [{'title': 'a'}, {'title': 'b'}])
        self.assertEqual(normalizer.normalize('nope nope').raw_sample, 'nope ')

    def test_schema_source_keys_order(self):
        spec = COMPETENCY_SCHEMA.fields[3]
        self.assertEqual(spec.source_keys, ('Under Used', 'underused', 'under_used', 'underUsed'))


if __name__ == '__main__':
    unittest.main()
