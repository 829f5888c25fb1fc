#!/usr/bin/env python3
"""Profile pushxml to find performance bottlenecks."""

import cProfile
import io
import pstats

from pushxml import EventRecorder, parse

# Sample XML
xml = b"""
<catalog>
    <item id="1" note="a &amp; b">
        <name>Item &lt;one&gt;</name>
        <price currency='EUR'>10.00</price>
        <![CDATA[raw <payload>]]>
        <!-- comment -->
    </item>
    <item id="2"><name>Item two</name><empty/></item>
</catalog>
""" * 100  # Repeat for more meaningful results

document = b"<root>" + xml + b"</root>"

# Profile
pr = cProfile.Profile()
pr.enable()

for _ in range(10):
    parse(EventRecorder(decode=True), document)

pr.disable()

# Print stats
s = io.StringIO()
ps = pstats.Stats(pr, stream=s).sort_stats("cumulative")
ps.print_stats(50)  # Top 50 functions
print(s.getvalue())
