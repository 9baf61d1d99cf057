# Copyright (c) US Inc. All rights reserved.
import unittest

from tests.fakes import FakeGenerationClient, MemoryFileSource, csv_bytes, json_bytes
from tuneforge.services.dataset_validator import DatasetPromptBuilder, DatasetValidator


class TestDatasetValidator(unittest.IsolatedAsyncioTestCase):

    def _validator(self, files, client=None):
        builder = DatasetPromptBuilder(client) if client else None
        return DatasetValidator(MemoryFileSource(files), prompt_builder=builder)

    async def test_csv_counts_and_samples_five(self):
        validator = self._validator({'a.csv': csv_bytes(50)})
        analysis = await validator.validate('a.csv', 'csv')
        self.assertTrue(analysis.valid)
        self.assertEqual(analysis.row_count, 50)
        self.assertEqual(analysis.sample_records, 5)
        self.assertEqual(analysis.sample_preview[0], {'question': 'q0', 'answer': 'a0'})
        self.assertIsNone(analysis.prompt)

    async def test_csv_with_bom_and_few_rows(self):
        validator = self._validator({'a.csv': b'\xef\xbb\xbf' + csv_bytes(3)})
        analysis = await validator.validate('a.csv', 'CSV')
        self.assertEqual(analysis.row_count, 3)
        self.assertEqual(analysis.sample_records, 3)
        self.assertIn('question', analysis.sample_preview[0])

    async def test_header_only_csv_is_invalid(self):
        validator = self._validator({'a.csv': b'question,answer\n'})
        analysis = await validator.validate('a.csv', 'csv')
        self.assertFalse(analysis.valid)
        self.assertEqual(analysis.row_count, 0)
        self.assertEqual(analysis.sample_records, 0)

    async def test_json_array_samples_thirty(self):
        items = [{'q': i} for i in range(40)]
        validator = self._validator({'a.json': json_bytes(items)})
        analysis = await validator.validate('a.json', 'json')
        self.assertTrue(analysis.valid)
        self.assertEqual(analysis.row_count, 40)
        self.assertEqual(analysis.sample_records, 30)

    async def test_json_object_counts_as_one_record(self):
        validator = self._validator({'a.json': json_bytes({'q': 1})})
        analysis = await validator.validate('a.json', 'json')
        self.assertTrue(analysis.valid)
        self.assertEqual(analysis.row_count, 1)
        self.assertEqual(analysis.sample_preview, [{'q': 1}])

    async def test_empty_json_array_is_invalid(self):
        validator = self._validator({'a.json': b'[]'})
        analysis = await validator.validate('a.json', 'json')
        self.assertFalse(analysis.valid)
        self.assertEqual(analysis.sample_records, 0)

    async def test_malformed_json_reports_error(self):
        validator = self._validator({'a.json': b'{"q": '})
        analysis = await validator.validate('a.json', 'json')
        self.assertFalse(analysis.valid)
        self.assertEqual(analysis.row_count, 0)
        self.assertTrue(analysis.error)

    async def test_missing_file_reports_error(self):
        analysis = await self._validator({}).validate('missing.csv', 'csv')
        self.assertFalse(analysis.valid)
        self.assertTrue(analysis.error)

    async def test_unsupported_format(self):
        analysis = await self._validator({'a.txt': b'hello'}).validate('a.txt', 'txt')
        self.assertFalse(analysis.valid)
        self.assertEqual(analysis.error, 'Unsupported format: txt')

    async def test_json_prompt_synthesized(self):
        client = FakeGenerationClient(texts=['  Generate records with a q field.  '])
        validator = self._validator({'a.json': json_bytes([{'q': 1}, {'q': 2}])}, client)
        analysis = await validator.validate('a.json', 'json')
        self.assertEqual(analysis.prompt, 'Generate records with a q field.')
        self.assertEqual(len(client.calls), 1)
        self.assertEqual(client.calls[0]['temperature'], 0.3)
        self.assertIn('"q": 2', client.calls[0]['prompt'])

    async def test_csv_never_asks_for_prompt(self):
        client = FakeGenerationClient(texts=['unused'])
        analysis = await self._validator({'a.csv': csv_bytes(2)}, client).validate('a.csv', 'csv')
        self.assertTrue(analysis.valid)
        self.assertIsNone(analysis.prompt)
        self.assertEqual(client.calls, [])

    async def test_prompt_failure_keeps_dataset_valid(self):
        client = FakeGenerationClient(error=RuntimeError('quota'))
        analysis = await self._validator({'a.json': json_bytes([{'q': 1}])}, client).validate('a.json', 'json')
        self.assertTrue(analysis.valid)
        self.assertEqual(analysis.row_count, 1)
        self.assertIsNone(analysis.prompt)
        self.assertIn('Prompt generation failed', analysis.error)


if __name__ == '__main__':
    unittest.main()
