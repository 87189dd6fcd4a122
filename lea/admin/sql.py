"""
Applying SQL files (schema migration, RLS policies) through Supabase RPC.

Supabase does not expose raw SQL over its REST API, so statements are sent
one at a time to an `exec_sql(sql text)` database function that the
migration itself installs.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Optional

logger = logging.getLogger(__name__)

EXEC_SQL_FUNCTION = "exec_sql"

_DOLLAR_TAG = re.compile(r"\$[A-Za-z_][A-Za-z0-9_]*\$|\$\$")
_CREATE_POLICY = re.compile(r"\bCREATE\s+POLICY\b", re.IGNORECASE)
_ENABLE_RLS = re.compile(
  r"\bALTER\s+TABLE\s+(?:IF\s+EXISTS\s+)?(?:ONLY\s+)?([\w.\"]+)\s+ENABLE\s+ROW\s+LEVEL\s+SECURITY\b",
  re.IGNORECASE,
)


def split_statements(sql: str) -> list[str]:
  """
  Split a SQL script into statements.

  Semicolons inside quoted strings, quoted identifiers and dollar-quoted
  bodies (function definitions) do not end a statement. Comments outside
  those are dropped, and so are statements left empty.
  """
  statements = []
  buf = []
  i, n = 0, len(sql)
  quote = None        # "'" or '"' while inside a quoted literal/identifier
  dollar_tag = None   # e.g. "$$" or "$body$" while inside a dollar-quoted body

  while i < n:
    ch = sql[i]

    if dollar_tag:
      if sql.startswith(dollar_tag, i):
        buf.append(dollar_tag)
        i += len(dollar_tag)
        dollar_tag = None
      else:
        buf.append(ch)
        i += 1
      continue

    if quote:
      buf.append(ch)
      if ch == quote:
        # doubled quote is an escaped quote
        if i + 1 < n and sql[i + 1] == quote:
          buf.append(quote)
          i += 2
          continue
        quote = None
      i += 1
      continue

    if sql.startswith("--", i):
      end = sql.find("\n", i)
      i = n if end == -1 else end
      continue

    if sql.startswith("/*", i):
      end = sql.find("*/", i + 2)
      i = n if end == -1 else end + 2
      continue

    if ch in ("'", '"'):
      quote = ch
      buf.append(ch)
      i += 1
      continue

    if ch == "$":
      match = _DOLLAR_TAG.match(sql, i)
      if match:
        dollar_tag = match.group(0)
        buf.append(dollar_tag)
        i = match.end()
        continue

    if ch == ";":
      statement = "".join(buf).strip()
      if statement:
        statements.append(statement)
      buf = []
      i += 1
      continue

    buf.append(ch)
    i += 1

  tail = "".join(buf).strip()
  if tail:
    statements.append(tail)
  return statements


@dataclass
class PolicySummary:
  """What an RLS policy file will do."""
  policy_count: int
  tables: list[str]

  @property
  def table_count(self) -> int:
    return len(self.tables)


def count_policies(sql: str) -> PolicySummary:
  """Count CREATE POLICY statements and the tables that get RLS enabled."""
  tables = []
  for match in _ENABLE_RLS.finditer(sql):
    name = match.group(1).replace('"', "")
    if name not in tables:
      tables.append(name)
  return PolicySummary(policy_count=len(_CREATE_POLICY.findall(sql)), tables=tables)


@dataclass
class StatementFailure:
  index: int
  statement: str
  error: str


@dataclass
class MigrationReport:
  """Outcome of applying a list of statements."""
  total: int
  applied: int = 0
  failures: list[StatementFailure] = field(default_factory=list)
  stopped_early: bool = False

  @property
  def ok(self) -> bool:
    return not self.failures


def apply_statements(
  client,
  statements: list[str],
  stop_on_error: bool = False,
  on_statement: Optional[Callable[[int, str], None]] = None,
) -> MigrationReport:
  """
  Run each statement through the exec_sql RPC, in order.

  Failures are collected rather than raised; with stop_on_error the run
  ends at the first one.
  """
  report = MigrationReport(total=len(statements))

  for index, statement in enumerate(statements, start=1):
    if on_statement:
      on_statement(index, statement)
    try:
      client.rpc(EXEC_SQL_FUNCTION, {"sql": statement}).execute()
      report.applied += 1
    except Exception as e:
      logger.error("Statement %d/%d failed: %s", index, report.total, e)
      report.failures.append(StatementFailure(index=index, statement=statement, error=str(e)))
      if stop_on_error:
        report.stopped_early = index < report.total
        break

  logger.info("Applied %d/%d statements", report.applied, report.total)
  return report
