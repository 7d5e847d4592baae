# barbershop/data.py

# Default catalog inserted by `barbershop-seed`.
# Services reference categories by name; rewards reference services by name.

CATEGORIES = [
    {"name": "Haircuts", "description": "All haircut services", "display_order": 1},
    {"name": "Shaves", "description": "All shaving services", "display_order": 2},
    {"name": "Styling", "description": "Hair styling services", "display_order": 3},
    {"name": "Coloring", "description": "Hair coloring services", "display_order": 4},
]

SERVICES = [
    {"name": "Regular Haircut", "description": "Standard haircut with scissors", "price": 25,
     "duration_minutes": 30, "category": "Haircuts", "popularity_score": 10},
    {"name": "Buzz Cut", "description": "Short haircut with clippers", "price": 20,
     "duration_minutes": 20, "category": "Haircuts", "popularity_score": 8},
    {"name": "Beard Trim", "description": "Trim and shape beard", "price": 15,
     "duration_minutes": 15, "category": "Shaves", "popularity_score": 9},
    {"name": "Hot Towel Shave", "description": "Traditional hot towel shave", "price": 30,
     "duration_minutes": 30, "category": "Shaves", "popularity_score": 7},
    {"name": "Hair Styling", "description": "Hair styling with products", "price": 20,
     "duration_minutes": 20, "category": "Styling", "popularity_score": 6},
    {"name": "Hair Coloring", "description": "Full hair coloring service", "price": 50,
     "duration_minutes": 60, "category": "Coloring", "popularity_score": 5},
]

# "services": None means every seeded service
REWARDS = [
    {"name": "Free Beard Trim", "description": "Free beard trim after 5 visits",
     "visits_required": 5, "reward_type": "free", "services": ["Beard Trim"]},
    {"name": "Free Haircut", "description": "Free regular haircut after 10 visits",
     "visits_required": 10, "reward_type": "free", "services": ["Regular Haircut"]},
    {"name": "50% Off Any Service", "description": "50% off any service after 15 visits",
     "visits_required": 15, "reward_type": "discount", "discount_percentage": 50, "services": None},
]

ACHIEVEMENTS = [
    {"title": "Welcome Aboard", "description": "Complete your first week with the team",
     "category": "tenure", "subcategory": "onboarding", "requirement": 7, "requirement_type": "days",
     "badge": "🎯", "color": "bg-blue-500", "icon": "FaCalendarCheck", "tier": "bronze", "points": 50,
     "reward": {"type": "recognition", "value": "Team Welcome Certificate"}},
    {"title": "One Month Strong", "description": "Celebrate your first month of dedication",
     "category": "tenure", "subcategory": "milestone", "requirement": 30, "requirement_type": "days",
     "badge": "📅", "color": "bg-green-500", "icon": "FaCalendarAlt", "tier": "bronze", "points": 100,
     "reward": {"type": "monetary", "value": "$25"}},
    {"title": "Quarterly Champion", "description": "Complete your first 3 months of excellent service",
     "category": "tenure", "subcategory": "milestone", "requirement": 90, "requirement_type": "days",
     "badge": "🏅", "color": "bg-yellow-500", "icon": "FaMedal", "tier": "silver", "points": 250,
     "reward": {"type": "time_off", "value": "1 day"}},
    {"title": "Annual Veteran", "description": "One full year of dedication to the craft",
     "category": "tenure", "subcategory": "milestone", "requirement": 365, "requirement_type": "days",
     "badge": "👑", "color": "bg-purple-600", "icon": "FaCrown", "tier": "platinum", "points": 1000,
     "reward": {"type": "monetary", "value": "$300"}},
    {"title": "First Cuts", "description": "Serve your first 10 clients",
     "category": "visits", "subcategory": "volume", "requirement": 10, "requirement_type": "count",
     "badge": "✂️", "color": "bg-blue-500", "icon": "FaCut", "tier": "bronze", "points": 50},
    {"title": "Busy Month", "description": "Complete 50 visits in a single month",
     "category": "visits", "subcategory": "monthly", "requirement": 50, "requirement_type": "count",
     "requirement_details": {"timeframe": "monthly"}, "is_repeatable": True,
     "badge": "📈", "color": "bg-green-500", "icon": "FaChartLine", "tier": "silver", "points": 150},
    {"title": "Consistency Starter", "description": "Serve clients 5 days in a row",
     "category": "consistency", "subcategory": "daily_visits", "requirement": 5, "requirement_type": "streak",
     "requirement_details": {"minimum_value": 1},
     "badge": "🔥", "color": "bg-orange-500", "icon": "FaFire", "tier": "bronze", "points": 100},
    {"title": "Reliability Expert", "description": "Hit 5 visits a week for 8 weeks",
     "category": "consistency", "subcategory": "weekly_consistency", "requirement": 8,
     "requirement_type": "streak", "requirement_details": {"minimum_value": 5},
     "badge": "🎯", "color": "bg-red-500", "icon": "FaBullseye", "tier": "gold", "points": 300},
    {"title": "People Person", "description": "Serve 5 different clients",
     "category": "clients", "subcategory": "diversity", "requirement": 5, "requirement_type": "count",
     "badge": "👥", "color": "bg-pink-500", "icon": "FaUsers", "tier": "bronze", "points": 50},
    {"title": "Community Favorite", "description": "Serve 25 different clients",
     "category": "clients", "subcategory": "growth", "requirement": 25, "requirement_type": "count",
     "badge": "💖", "color": "bg-pink-600", "icon": "FaHeart", "tier": "silver", "points": 150},
    {"title": "Quality Craftsman", "description": "Keep 80% of your clients coming back",
     "category": "quality", "subcategory": "client_retention", "requirement": 80,
     "requirement_type": "percentage",
     "badge": "🏆", "color": "bg-yellow-600", "icon": "FaTrophy", "tier": "gold", "points": 300},
    {"title": "Service Specialist", "description": "Perform 4 different services",
     "category": "quality", "subcategory": "service_variety", "requirement": 4, "requirement_type": "count",
     "badge": "🎨", "color": "bg-indigo-500", "icon": "FaPalette", "tier": "silver", "points": 200},
]

BARBER_REWARDS = [
    {"name": "First 100 Visits", "description": "Bonus for reaching 100 visits",
     "reward_type": "monetary", "reward_value": "$50", "requirement_type": "visits", "requirement_value": 100,
     "requirement_description": "Complete 100 visits", "category": "performance",
     "icon": "💰", "color": "bg-green-500", "priority": 1},
    {"name": "Loyal Following", "description": "Gift for serving 50 unique clients",
     "reward_type": "gift", "reward_value": "Premium clipper set", "requirement_type": "clients",
     "requirement_value": 50, "requirement_description": "Serve 50 unique clients", "category": "clients",
     "icon": "🎁", "color": "bg-pink-500", "priority": 2},
    {"name": "Six Months In", "description": "Extra day off after six months",
     "reward_type": "time_off", "reward_value": "1 day", "requirement_type": "months_worked",
     "requirement_value": 6, "requirement_description": "Work for 6 months", "category": "tenure",
     "icon": "🌴", "color": "bg-blue-500", "priority": 3},
    {"name": "Retention Star", "description": "Recognition for keeping clients coming back",
     "reward_type": "recognition", "reward_value": "Barber of the Month", "requirement_type": "client_retention",
     "requirement_value": 70, "requirement_description": "Reach 70% client retention", "category": "quality",
     "icon": "⭐", "color": "bg-yellow-500", "priority": 4},
]
