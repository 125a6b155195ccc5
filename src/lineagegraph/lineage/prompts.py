"""Prompt templates for lineage reports and unit-test generation."""

from __future__ import annotations

from lineagegraph.config import UnitTestConfig


def build_lineage_prompt(code: str) -> str:
    """Wrap collected code context in the lineage-report instructions."""
    return f"""Analyze the following Apache Spark code and generate a full data lineage report.

Your goals:
1. Identify all source datasets (Hive tables, S3 files, etc.).
2. Describe each dataset's schema and filters.
3. Trace all transformations:
   - Filter, map, select, drop, withColumn, etc.
   - Joins and join types
   - Aggregations (groupBy, reduceByKey)
   - UDFs
4. Explain how data splits or merges during execution.
5. Identify the final output/sink.
6. Map outputs back to their original sources and transformations.
7. Provide Spark code examples where possible.
8. Generate a Mermaid diagram for visualization.
9. Mention any data quality or transformation risks.
10. If Kafka, Hive, Delta Lake are involved, explain their lineage impact.

Use clear language, number each section, and include Mermaid code at the end.

Code:
{code}"""


def build_unit_test_prompt(
    code: str, routine_name: str, class_name: str, settings: UnitTestConfig
) -> str:
    """Ask for a unit-test class covering ``routine_name``."""
    fence = settings.language.lower()
    return f"""Write unit tests for the method `{routine_name}` in the code below.

Environment:
- Language: {settings.language}
- Test framework: {settings.framework}
- Java version: {settings.java_version}
- Spark version: {settings.spark_version}
- Mockito version: {settings.mockito_version}

Requirements:
- Name the test class `{class_name}`.
- Cover the normal path, edge cases and failure handling.
- Mock external systems (file systems, tables, network) with Mockito.
- For Spark code, use a local SparkSession created once for the class.
- Return the complete test class in a single ```{fence} code block.

Code:
{code}"""
