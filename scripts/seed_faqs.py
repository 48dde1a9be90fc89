"""Load teacher-written FAQ rows from a CSV into Supabase.

Run (after setting environment variables) with:
    python scripts/seed_faqs.py [path/to/faqs.csv]

Environment variables needed:
- SUPABASE_URL
- SUPABASE_SERVICE_ROLE_KEY

CSV columns: question,answer (header required, answers may be quoted).

Tables expected by the API (create them first via dashboard):

 faqs
   id (uuid, primary key, default gen_random_uuid())
   question (text)
   answer (text)
   ask_count (int, default 0)
   created_at / updated_at (timestamptz, default now())

 doubt_similarity_log
   id (uuid, primary key)
   doubt_question (text)
   matched_faq_id (uuid, nullable, references faqs.id on delete set null)
   created_at (timestamptz, default now())

Optional, for FAQ_ATOMIC_INCREMENT=true:

 create function increment_faq_ask_count(faq_id uuid) returns void as $$
   update faqs set ask_count = ask_count + 1, updated_at = now() where id = faq_id;
 $$ language sql;
"""
import os
import sys
import csv
from dotenv import load_dotenv
from supabase import create_client, Client

DEFAULT_CSV = os.path.join(os.path.dirname(__file__), "..", "data", "faqs.csv")


def load_rows(csv_path: str):
    rows = []
    with open(csv_path, encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        for line_num, record in enumerate(reader, start=2):
            question = (record.get("question") or "").strip()
            answer = (record.get("answer") or "").strip()
            if not question or not answer:
                print(f"Skipping line {line_num}: question and answer are both required")
                continue
            rows.append({"question": question, "answer": answer, "ask_count": 0})
    return rows


def insert_rows(supabase: Client, rows):
    for row in rows:
        resp = supabase.table("faqs").insert(row).execute()
        if resp.data:
            print(f"Inserted id={resp.data[0].get('id')}: {row['question'][:40]}...")
        else:
            print(f"No data returned for: {row['question'][:40]}...")


def main():
    load_dotenv()
    supabase_url = os.getenv("SUPABASE_URL")
    supabase_key = os.getenv("SUPABASE_SERVICE_ROLE_KEY")
    if not supabase_url or not supabase_key:
        raise SystemExit("Missing SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY environment variables.")

    csv_path = sys.argv[1] if len(sys.argv) > 1 else DEFAULT_CSV
    if not os.path.exists(csv_path):
        raise SystemExit(f"CSV path not found: {csv_path}")
    rows = load_rows(csv_path)
    print(f"Loaded {len(rows)} FAQ rows from CSV: {csv_path}")
    insert_rows(create_client(supabase_url, supabase_key), rows)
    print("Done.")

if __name__ == "__main__":
    main()
