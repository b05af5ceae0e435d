import random
import sys
import time

HEADER = (
    "ID     CLASS    SRC_MAC            DST_MAC            VLAN  SRC_AS  DST_AS  "
    "SRC_IP           DST_IP           SRC_PORT  DST_PORT  TCP_FLAGS  PROTOCOL  TOS  "
    "PACKETS  FLOWS  BYTES"
)
NOISE = "WARN ( default/memory ): Unable to allocate more buckets. Increase imt_buckets."


def main():
    """
    Print pmacct style output with the usual log noise mixed in.

    Example:
      python scripts/sample_pmacct_feed.py | pmacct-relay syd1 memory://dry-run
    """
    hosts = ["10.0.0.1", "10.0.0.2", "202.4.228.250", "180.76.5.15"]
    out = sys.stdout

    out.write(HEADER + "\n")
    for i in range(200):
        if i % 50 == 0:
            out.write(NOISE + "\n")
        src, dst = random.sample(hosts, 2)
        packets = random.randint(1, 100)
        nbytes = packets * random.choice([60, 576, 1500])
        out.write(
            f"{i}  unknown  00:00:00:00:00:00  00:00:00:00:00:00  0  0  0  "
            f"{src}  {dst}  0  0  0  ip  0  {packets}  1  {nbytes}\n"
        )
        out.flush()
        time.sleep(0.02)
    out.write("For a total of: 200 entries\n")


if __name__ == "__main__":
    main()
